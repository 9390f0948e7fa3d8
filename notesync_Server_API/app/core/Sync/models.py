# Sync/models.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List, Union

from notesync_Server_API.app.core.DB_Management.NoteSync_DB import InputError
from notesync_Server_API.app.core.DB_Management.Entity_Models import (
    Conversation, Message, Note, Folder, EPOCH, parse_timestamp
)

logger = logging.getLogger(__name__)

# Order in which a push applies kinds, so that references created in the same batch resolve.
PUSH_KIND_ORDER = ("conversations", "messages", "folders", "notes")


def parse_checkpoint(since: Union[str, datetime, None]) -> datetime:
    """Absent checkpoint means 'since the epoch'. Anything unparseable is a validation error."""
    if since is None or (isinstance(since, str) and not since.strip()):
        return EPOCH
    parsed = parse_timestamp(since)
    if parsed is None:
        raise InputError(f"Invalid 'since' checkpoint: {since!r}. Expected an ISO-8601 timestamp.")
    return parsed


@dataclass
class PullResult:
    server_time: datetime
    conversations: List[Conversation] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
    folders: List[Folder] = field(default_factory=list)

    def total(self) -> int:
        return len(self.conversations) + len(self.messages) + len(self.notes) + len(self.folders)


@dataclass
class PushBatch:
    """
    Client-submitted entity states, one plain dict per item with snake_case keys.

    Owner fields inside the dicts are ignored; the engine stamps the caller's identity.
    """
    conversations: List[Dict[str, Any]] = field(default_factory=list)
    messages: List[Dict[str, Any]] = field(default_factory=list)
    notes: List[Dict[str, Any]] = field(default_factory=list)
    folders: List[Dict[str, Any]] = field(default_factory=list)

    def total(self) -> int:
        return len(self.conversations) + len(self.messages) + len(self.notes) + len(self.folders)


@dataclass
class KindStats:
    created: int = 0
    updated: int = 0
    skipped: int = 0


@dataclass
class PushResult:
    stats: Dict[str, KindStats] = field(default_factory=lambda: {k: KindStats() for k in PUSH_KIND_ORDER})

    def record(self, kind: str, outcome: str):
        setattr(self.stats[kind], outcome, getattr(self.stats[kind], outcome) + 1)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {kind: {"created": s.created, "updated": s.updated, "skipped": s.skipped}
                for kind, s in self.stats.items()}


def _required_timestamp(payload: Dict[str, Any], key: str, kind: str) -> datetime:
    value = parse_timestamp(payload.get(key))
    if value is None:
        raise InputError(f"{kind} item '{payload.get('id')}' has a missing or invalid '{key}'.")
    return value


def _optional_timestamp(payload: Dict[str, Any], key: str, kind: str) -> Optional[datetime]:
    raw = payload.get(key)
    if raw is None:
        return None
    value = parse_timestamp(raw)
    if value is None:
        raise InputError(f"{kind} item '{payload.get('id')}' has an invalid '{key}'.")
    return value


def build_entity(kind: str, payload: Dict[str, Any], owner_user_id: str):
    """
    Turns one pushed payload into the canonical entity, owned by `owner_user_id`.

    createdAt defaults to updatedAt when the client did not send it.
    """
    entity_id = payload.get("id")
    if not entity_id or not isinstance(entity_id, str):
        raise InputError(f"{kind} item is missing its 'id'.")
    updated_at = _required_timestamp(payload, "updated_at", kind)
    created_at = _optional_timestamp(payload, "created_at", kind) or updated_at
    deleted_at = _optional_timestamp(payload, "deleted_at", kind)
    common = dict(id=entity_id, owner_user_id=owner_user_id, created_at=created_at,
                  updated_at=updated_at, deleted_at=deleted_at)
    try:
        if kind == "conversations":
            return Conversation(title=payload.get("title") or "", **common)
        if kind == "messages":
            if not payload.get("conversation_id"):
                raise InputError(f"message item '{entity_id}' is missing 'conversation_id'.")
            return Message(conversation_id=payload["conversation_id"], role=payload.get("role"),
                           content=payload.get("content") or "", **common)
        if kind == "notes":
            return Note(title=payload.get("title") or "", content=payload.get("content") or "",
                        folder_id=payload.get("folder_id"), **common)
        if kind == "folders":
            if not payload.get("name"):
                raise InputError(f"folder item '{entity_id}' is missing 'name'.")
            return Folder(name=payload["name"], parent_id=payload.get("parent_id"), **common)
    except ValueError as e:
        # Message role outside the enum, or an InputError raised above.
        if isinstance(e, InputError):
            raise
        raise InputError(f"{kind} item '{entity_id}' is invalid: {e}") from e
    raise InputError(f"Unknown entity kind: {kind}")
