# Sync/conflict.py
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)

APPLY_REMOTE = "apply_remote"
KEEP_LOCAL = "keep_local"
FOREIGN_OWNER = "foreign_owner"


class ConflictResolver(ABC):
    """Abstract base class for conflict resolution strategies."""

    @abstractmethod
    def resolve(self, local_entity, remote_entity, owner_user_id: str) -> str:
        """
        Determines the outcome when a pushed entity meets the stored one.

        Args:
            local_entity: The stored entity with the same id (any owner), or None.
            remote_entity: The incoming entity, already stamped with the caller's identity.
            owner_user_id: The authenticated caller.

        Returns:
            'apply_remote': Write the incoming state (create or full update).
            'keep_local': Keep the stored version, drop the incoming one.
            'foreign_owner': The id belongs to another owner; drop the incoming one.
        """
        pass


class LastWriteWinsStrategy(ConflictResolver):
    """Newer updated_at wins. Equal timestamps keep the stored version, which makes re-pushes no-ops."""

    def resolve(self, local_entity, remote_entity, owner_user_id: str) -> str:
        entity_id = remote_entity.id
        if local_entity is None:
            logger.debug(f"Conflict resolution ({entity_id}): no stored version. Outcome: Apply Remote.")
            return APPLY_REMOTE

        if local_entity.owner_user_id != owner_user_id:
            logger.debug(f"Conflict resolution ({entity_id}): stored version belongs to another owner. Outcome: Skip.")
            return FOREIGN_OWNER

        local_ts = local_entity.updated_at
        remote_ts = remote_entity.updated_at
        if local_ts >= remote_ts:
            logger.debug(f"Conflict resolution ({entity_id}): Local TS {local_ts} >= Remote TS {remote_ts}. Outcome: Keep Local.")
            return KEEP_LOCAL

        logger.debug(f"Conflict resolution ({entity_id}): Remote TS {remote_ts} > Local TS {local_ts}. Outcome: Apply Remote.")
        return APPLY_REMOTE
