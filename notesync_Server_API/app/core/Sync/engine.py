# Sync/engine.py
# Description: Pull (changes since a checkpoint) and Push (apply a client batch with Last-Write-Wins).
import logging
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional, Union

from notesync_Server_API.app.core.DB_Management.NoteSync_DB import NoteSyncDB, NoteSyncDBError, InputError
from notesync_Server_API.app.core.DB_Management.Entity_Models import Folder, Message, Note, utc_now
from notesync_Server_API.app.core.DB_Management.Entity_Stores import (
    EntityStore, ConversationStore, MessageStore, NoteStore, FolderStore
)
from notesync_Server_API.app.core.Notes.Folder_Tree import FolderTreeIndex
from .conflict import ConflictResolver, LastWriteWinsStrategy, APPLY_REMOTE
from .exceptions import ApplyError
from .models import PullResult, PushBatch, PushResult, PUSH_KIND_ORDER, build_entity, parse_checkpoint

logger = logging.getLogger(__name__)


def _order_folders_parent_first(folders: List[Folder]) -> List[Folder]:
    """Stable sort of pushed folders so a parent in the same batch is applied before its children."""
    by_id = {f.id: f for f in folders}

    def depth(folder: Folder) -> int:
        seen = {folder.id}
        d = 0
        current = folder
        while current.parent_id in by_id and current.parent_id not in seen:
            seen.add(current.parent_id)
            current = by_id[current.parent_id]
            d += 1
        return d

    return sorted(folders, key=depth)


class SyncEngine:
    """
    Reconciles client state with the shared store for one authenticated owner per call.

    Pull is a read-only snapshot; Push applies a whole batch in one transaction or not at all.
    """

    def __init__(self, db: NoteSyncDB, clock: Callable[[], datetime] = utc_now,
                 resolver: Optional[ConflictResolver] = None, max_batch_items: Optional[int] = None):
        self.db = db
        self.clock = clock
        self.resolver = resolver or LastWriteWinsStrategy()
        self.max_batch_items = max_batch_items
        self.conversation_store = ConversationStore(db)
        self.message_store = MessageStore(db)
        self.note_store = NoteStore(db)
        self.folder_store = FolderStore(db)
        self.tree = FolderTreeIndex(self.folder_store)
        self._stores: Dict[str, EntityStore] = {
            "conversations": self.conversation_store,
            "messages": self.message_store,
            "notes": self.note_store,
            "folders": self.folder_store,
        }

    # --- Pull ---
    def pull(self, owner_user_id: str, since: Union[str, datetime, None] = None) -> PullResult:
        since_dt = parse_checkpoint(since)
        # IMMEDIATE keeps writers out while the clock is read and the four kinds are fetched, so
        # every later server-side write is stamped at or after server_time.
        with self.db.transaction(immediate=True) as conn:
            result = PullResult(server_time=self.clock())
            result.conversations = self.conversation_store.find_modified_since(conn, owner_user_id, since_dt)
            result.messages = self.message_store.find_modified_since(conn, owner_user_id, since_dt)
            result.notes = self.note_store.find_modified_since(conn, owner_user_id, since_dt)
            result.folders = self.folder_store.find_modified_since(conn, owner_user_id, since_dt)
        logger.info(f"Pull for owner '{owner_user_id}' since {since_dt.isoformat()}: {result.total()} change(s).")
        return result

    # --- Push ---
    def _build_all(self, owner_user_id: str, batch: PushBatch) -> Dict[str, list]:
        entities: Dict[str, list] = {}
        for kind in PUSH_KIND_ORDER:
            payloads: List[Dict[str, Any]] = getattr(batch, kind) or []
            entities[kind] = [build_entity(kind, p, owner_user_id) for p in payloads]
        entities["folders"] = _order_folders_parent_first(entities["folders"])
        return entities

    def _reference_guard(self, conn, kind: str, entity, owner_user_id: str) -> Optional[str]:
        """Reason to skip an entity whose references point outside the caller's data, else None."""
        if kind == "messages":
            message: Message = entity
            if self.conversation_store.get(conn, owner_user_id, message.conversation_id,
                                           include_deleted=True) is None:
                return "conversation not owned"
        elif kind == "notes":
            note: Note = entity
            if note.folder_id is not None and self.folder_store.get(
                    conn, owner_user_id, note.folder_id, include_deleted=True) is None:
                return "folder not owned"
        elif kind == "folders":
            folder: Folder = entity
            if folder.parent_id is not None:
                if self.folder_store.get(conn, owner_user_id, folder.parent_id, include_deleted=True) is None:
                    return "parent folder not owned"
                if self.tree.would_create_cycle(conn, owner_user_id, folder.id, folder.parent_id):
                    return "parent would create a cycle"
        return None

    def _apply_one(self, conn, kind: str, entity, owner_user_id: str, result: PushResult):
        store = self._stores[kind]
        existing = store.find_by_id(conn, entity.id)
        outcome = self.resolver.resolve(existing, entity, owner_user_id)
        if outcome != APPLY_REMOTE:
            logger.debug(f"Push skip {kind} '{entity.id}' for owner '{owner_user_id}': {outcome}")
            result.record(kind, "skipped")
            return

        reason = self._reference_guard(conn, kind, entity, owner_user_id)
        if reason:
            logger.debug(f"Push skip {kind} '{entity.id}' for owner '{owner_user_id}': {reason}")
            result.record(kind, "skipped")
            return

        if existing is None:
            store.insert(conn, entity)
            result.record(kind, "created")
        else:
            store.replace(conn, entity)
            result.record(kind, "updated")

    def push(self, owner_user_id: str, batch: PushBatch) -> PushResult:
        """
        Applies every item of `batch` for `owner_user_id` in one transaction.

        Items are independent: losing LWW, hitting another owner's id, or referencing data the caller
        does not own skips that item silently. Validation problems raise InputError before the
        store is touched; store failures roll the batch back and raise ApplyError.
        """
        total = batch.total()
        if self.max_batch_items is not None and total > self.max_batch_items:
            raise InputError(f"Push batch has {total} items; the limit is {self.max_batch_items}.")
        entities = self._build_all(owner_user_id, batch)

        result = PushResult()
        current_kind, current_id = None, None
        try:
            with self.db.transaction(immediate=True) as conn:
                for kind in PUSH_KIND_ORDER:
                    for entity in entities[kind]:
                        current_kind, current_id = kind, entity.id
                        self._apply_one(conn, kind, entity, owner_user_id, result)
                current_kind, current_id = None, None
        except NoteSyncDBError as e:
            logger.error(f"Push for owner '{owner_user_id}' rolled back: {e}")
            raise ApplyError(f"Push batch could not be applied: {e}", entity=current_kind,
                             entity_id=current_id) from e

        logger.info(f"Push for owner '{owner_user_id}' applied {total} item(s): {result.to_dict()}")
        return result
