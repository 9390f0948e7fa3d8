# Entity_Stores.py
# Description: Owner-scoped persistence for Conversations, Messages, Notes and Folders.
#
# Every method takes the transaction handle (`conn`) returned by `NoteSyncDB.transaction()`,
# so callers decide the atomic boundary and several stores can share one unit of work.
#
# Imports
import sqlite3
import logging
from dataclasses import fields
from datetime import datetime
from typing import List, Dict, Optional, Any, Iterable, Iterator, Tuple, Type, FrozenSet
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import (
    NoteSyncDB, NoteSyncDBError, ConflictError, InputError
)
from notesync_Server_API.app.core.DB_Management.Entity_Models import (
    Conversation, Message, Note, Folder, MessageRole, format_timestamp
)
#
########################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

# Stays well under SQLITE_MAX_VARIABLE_NUMBER on old builds (999).
_IN_CLAUSE_CHUNK = 500

FieldPatch = Dict[str, Any]


def _chunked(values: List[str], size: int = _IN_CLAUSE_CHUNK) -> Iterator[List[str]]:
    for i in range(0, len(values), size):
        yield values[i:i + size]


def _execute(conn: sqlite3.Connection, query: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
    try:
        return conn.execute(query, tuple(params))
    except sqlite3.IntegrityError as e:
        logger.warning(f"Integrity constraint violation: {query[:200]}... Error: {e}")
        if "unique constraint failed" in str(e).lower():
            raise ConflictError(f"Unique constraint violation: {e}") from e
        raise NoteSyncDBError(f"Database constraint violation: {e}") from e
    except sqlite3.Error as e:
        logger.error(f"Query execution failed: {query[:200]}... Error: {e}", exc_info=True)
        raise NoteSyncDBError(f"Query execution failed: {e}") from e


class EntityStore:
    """
    Persistence port for one entity kind.

    Soft delete, hard delete and restore are offered side by side for every kind;
    soft delete only stamps rows that are still active, restore clears the stamp
    on every targeted row.
    """
    table: str = ""
    entity_name: str = ""
    entity_cls: Type = None
    # Fields an ordinary partial update may touch.
    mutable_fields: FrozenSet[str] = frozenset()

    def __init__(self, db: NoteSyncDB):
        self.db = db
        self._columns = tuple(f.name for f in fields(self.entity_cls))

    # --- Reads ---
    def find_by_id(self, conn: sqlite3.Connection, entity_id: str):
        """Looks an id up regardless of owner. Only the push ownership guard needs this."""
        row = _execute(conn, f"SELECT * FROM {self.table} WHERE id = ?", (entity_id,)).fetchone()
        return self.entity_cls.from_row(row) if row else None

    def get(self, conn: sqlite3.Connection, owner_user_id: str, entity_id: str, include_deleted: bool = False):
        query = f"SELECT * FROM {self.table} WHERE id = ? AND owner_user_id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        row = _execute(conn, query, (entity_id, owner_user_id)).fetchone()
        return self.entity_cls.from_row(row) if row else None

    def list_for_owner(self, conn: sqlite3.Connection, owner_user_id: str, include_deleted: bool = False,
                       limit: Optional[int] = None, offset: int = 0) -> list:
        query = f"SELECT * FROM {self.table} WHERE owner_user_id = ?"
        params: List[Any] = [owner_user_id]
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY updated_at DESC, id"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        return [self.entity_cls.from_row(r) for r in _execute(conn, query, params).fetchall()]

    def find_modified_since(self, conn: sqlite3.Connection, owner_user_id: str, since: datetime) -> list:
        """All of the owner's rows with updated_at >= since, soft-deleted ones included."""
        rows = _execute(
            conn,
            f"SELECT * FROM {self.table} WHERE owner_user_id = ? AND updated_at >= ? ORDER BY updated_at ASC, id",
            (owner_user_id, format_timestamp(since)),
        ).fetchall()
        return [self.entity_cls.from_row(r) for r in rows]

    # --- Writes ---
    def insert(self, conn: sqlite3.Connection, entity):
        row = entity.to_row()
        cols = ", ".join(self._columns)
        placeholders = ", ".join("?" for _ in self._columns)
        try:
            _execute(conn, f"INSERT INTO {self.table} ({cols}) VALUES ({placeholders})",
                     [row[c] for c in self._columns])
        except ConflictError as e:
            holder = self.find_by_id(conn, entity.id)
            if holder is not None and holder.owner_user_id != entity.owner_user_id:
                # Same answer as any other unusable id; another owner's row is not acknowledged.
                raise InputError(f"The provided {self.entity_name} id cannot be used.") from e
            raise ConflictError(f"{self.entity_name} with this id already exists.",
                                entity=self.entity_name, entity_id=entity.id) from e
        return entity

    def replace(self, conn: sqlite3.Connection, entity) -> bool:
        """Overwrites every column but the id with the given state."""
        row = entity.to_row()
        cols = [c for c in self._columns if c != "id"]
        set_clause = ", ".join(f"{c} = ?" for c in cols)
        cursor = _execute(conn, f"UPDATE {self.table} SET {set_clause} WHERE id = ?",
                          [row[c] for c in cols] + [entity.id])
        return cursor.rowcount > 0

    def update(self, conn: sqlite3.Connection, owner_user_id: str, entity_id: str, patch: FieldPatch,
               now: datetime):
        """
        Applies a partial update to an active entity and bumps updated_at.

        Returns the updated entity, or None if no active entity with that id belongs to the owner.
        Raises InputError for keys outside `mutable_fields`.
        """
        illegal = set(patch) - self.mutable_fields
        if illegal:
            raise InputError(f"Cannot update field(s) {sorted(illegal)} on {self.entity_name}.")
        patch = self._normalize_patch(patch)

        set_parts = [f"{k} = ?" for k in patch] + ["updated_at = ?"]
        params: List[Any] = list(patch.values()) + [format_timestamp(now), entity_id, owner_user_id]
        cursor = _execute(
            conn,
            f"UPDATE {self.table} SET {', '.join(set_parts)} "
            f"WHERE id = ? AND owner_user_id = ? AND deleted_at IS NULL",
            params,
        )
        if cursor.rowcount == 0:
            return None
        return self.get(conn, owner_user_id, entity_id)

    def _normalize_patch(self, patch: FieldPatch) -> FieldPatch:
        return dict(patch)

    def soft_delete_many(self, conn: sqlite3.Connection, owner_user_id: str, ids: List[str], now: datetime) -> int:
        return self._soft_delete_where(conn, owner_user_id, "id", ids, now)

    def hard_delete_many(self, conn: sqlite3.Connection, owner_user_id: str, ids: List[str]) -> int:
        return self._hard_delete_where(conn, owner_user_id, "id", ids)

    def restore_many(self, conn: sqlite3.Connection, owner_user_id: str, ids: List[str], now: datetime) -> int:
        return self._restore_where(conn, owner_user_id, "id", ids, now)

    def delete_many(self, conn: sqlite3.Connection, owner_user_id: str, ids: List[str], now: datetime,
                    hard: bool = False) -> int:
        if hard:
            return self.hard_delete_many(conn, owner_user_id, ids)
        return self.soft_delete_many(conn, owner_user_id, ids, now)

    def delete_all_for_owner(self, conn: sqlite3.Connection, owner_user_id: str, now: datetime,
                             hard: bool = True) -> int:
        if hard:
            cursor = _execute(conn, f"DELETE FROM {self.table} WHERE owner_user_id = ?", (owner_user_id,))
        else:
            ts = format_timestamp(now)
            cursor = _execute(
                conn,
                f"UPDATE {self.table} SET deleted_at = ?, updated_at = ? "
                f"WHERE owner_user_id = ? AND deleted_at IS NULL",
                (ts, ts, owner_user_id),
            )
        return cursor.rowcount

    # --- Column-scoped bulk helpers ---
    def _soft_delete_where(self, conn: sqlite3.Connection, owner_user_id: str, column: str, values: List[str],
                           now: datetime) -> int:
        ts = format_timestamp(now)
        total = 0
        for chunk in _chunked(list(values)):
            placeholders = ", ".join("?" for _ in chunk)
            # Rows already soft-deleted keep their own deleted_at/updated_at; a later cascade does not re-stamp them.
            cursor = _execute(
                conn,
                f"UPDATE {self.table} SET deleted_at = ?, updated_at = ? "
                f"WHERE owner_user_id = ? AND deleted_at IS NULL AND {column} IN ({placeholders})",
                [ts, ts, owner_user_id] + chunk,
            )
            total += cursor.rowcount
        return total

    def _hard_delete_where(self, conn: sqlite3.Connection, owner_user_id: str, column: str,
                           values: List[str]) -> int:
        total = 0
        for chunk in _chunked(list(values)):
            placeholders = ", ".join("?" for _ in chunk)
            cursor = _execute(
                conn,
                f"DELETE FROM {self.table} WHERE owner_user_id = ? AND {column} IN ({placeholders})",
                [owner_user_id] + chunk,
            )
            total += cursor.rowcount
        return total

    def _restore_where(self, conn: sqlite3.Connection, owner_user_id: str, column: str, values: List[str],
                       now: datetime) -> int:
        ts = format_timestamp(now)
        total = 0
        for chunk in _chunked(list(values)):
            placeholders = ", ".join("?" for _ in chunk)
            cursor = _execute(
                conn,
                f"UPDATE {self.table} SET deleted_at = NULL, updated_at = ? "
                f"WHERE owner_user_id = ? AND {column} IN ({placeholders})",
                [ts, owner_user_id] + chunk,
            )
            total += cursor.rowcount
        return total


class ConversationStore(EntityStore):
    table = "conversations"
    entity_name = "conversation"
    entity_cls = Conversation
    mutable_fields = frozenset({"title"})


class MessageStore(EntityStore):
    table = "messages"
    entity_name = "message"
    entity_cls = Message
    mutable_fields = frozenset({"content", "role"})

    def _normalize_patch(self, patch: FieldPatch) -> FieldPatch:
        patch = dict(patch)
        if "role" in patch:
            try:
                patch["role"] = MessageRole(patch["role"]).value
            except ValueError as e:
                raise InputError(f"Invalid message role: {patch['role']!r}") from e
        return patch

    def list_for_conversation(self, conn: sqlite3.Connection, owner_user_id: str, conversation_id: str,
                              include_deleted: bool = False) -> List[Message]:
        query = "SELECT * FROM messages WHERE owner_user_id = ? AND conversation_id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY created_at ASC, id"
        rows = _execute(conn, query, (owner_user_id, conversation_id)).fetchall()
        return [Message.from_row(r) for r in rows]

    def soft_delete_by_conversation_ids(self, conn, owner_user_id: str, conversation_ids: List[str],
                                        now: datetime) -> int:
        return self._soft_delete_where(conn, owner_user_id, "conversation_id", conversation_ids, now)

    def hard_delete_by_conversation_ids(self, conn, owner_user_id: str, conversation_ids: List[str]) -> int:
        return self._hard_delete_where(conn, owner_user_id, "conversation_id", conversation_ids)

    def restore_by_conversation_ids(self, conn, owner_user_id: str, conversation_ids: List[str],
                                    now: datetime) -> int:
        return self._restore_where(conn, owner_user_id, "conversation_id", conversation_ids, now)


class NoteStore(EntityStore):
    table = "notes"
    entity_name = "note"
    entity_cls = Note
    mutable_fields = frozenset({"title", "content", "folder_id"})

    def list_in_folder(self, conn: sqlite3.Connection, owner_user_id: str, folder_id: Optional[str],
                       include_deleted: bool = False) -> List[Note]:
        """Notes directly inside `folder_id`; None lists root-level notes."""
        if folder_id is None:
            query = "SELECT * FROM notes WHERE owner_user_id = ? AND folder_id IS NULL"
            params: Tuple[Any, ...] = (owner_user_id,)
        else:
            query = "SELECT * FROM notes WHERE owner_user_id = ? AND folder_id = ?"
            params = (owner_user_id, folder_id)
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY updated_at DESC, id"
        return [Note.from_row(r) for r in _execute(conn, query, params).fetchall()]

    def soft_delete_by_folder_ids(self, conn, owner_user_id: str, folder_ids: List[str], now: datetime) -> int:
        return self._soft_delete_where(conn, owner_user_id, "folder_id", folder_ids, now)

    def hard_delete_by_folder_ids(self, conn, owner_user_id: str, folder_ids: List[str]) -> int:
        return self._hard_delete_where(conn, owner_user_id, "folder_id", folder_ids)

    def restore_by_folder_ids(self, conn, owner_user_id: str, folder_ids: List[str], now: datetime) -> int:
        return self._restore_where(conn, owner_user_id, "folder_id", folder_ids, now)

    def delete_all_in_folders(self, conn: sqlite3.Connection, owner_user_id: str, now: datetime,
                              hard: bool = True) -> int:
        """Deletes every note that lives in some folder; root-level notes are left alone."""
        if hard:
            cursor = _execute(conn, "DELETE FROM notes WHERE owner_user_id = ? AND folder_id IS NOT NULL",
                              (owner_user_id,))
        else:
            ts = format_timestamp(now)
            cursor = _execute(
                conn,
                "UPDATE notes SET deleted_at = ?, updated_at = ? "
                "WHERE owner_user_id = ? AND folder_id IS NOT NULL AND deleted_at IS NULL",
                (ts, ts, owner_user_id),
            )
        return cursor.rowcount


class FolderStore(EntityStore):
    table = "folders"
    entity_name = "folder"
    entity_cls = Folder
    mutable_fields = frozenset({"name", "parent_id"})

    def list_children(self, conn: sqlite3.Connection, owner_user_id: str, parent_id: Optional[str],
                      include_deleted: bool = False) -> List[Folder]:
        if parent_id is None:
            query = "SELECT * FROM folders WHERE owner_user_id = ? AND parent_id IS NULL"
            params: Tuple[Any, ...] = (owner_user_id,)
        else:
            query = "SELECT * FROM folders WHERE owner_user_id = ? AND parent_id = ?"
            params = (owner_user_id, parent_id)
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY name COLLATE NOCASE, id"
        return [Folder.from_row(r) for r in _execute(conn, query, params).fetchall()]

    def parent_links(self, conn: sqlite3.Connection, owner_user_id: str) -> List[Tuple[str, Optional[str]]]:
        """(id, parent_id) for all of the owner's folders, soft-deleted ones included."""
        rows = _execute(conn, "SELECT id, parent_id FROM folders WHERE owner_user_id = ?",
                        (owner_user_id,)).fetchall()
        return [(r["id"], r["parent_id"]) for r in rows]

#
# End of Entity_Stores.py
#######################################################################################################################
