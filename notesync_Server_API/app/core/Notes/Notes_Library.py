# Notes_Library.py
# Description: Note and folder operations on top of the shared store, including cascading folder lifecycle.
#
# Imports
import uuid
from datetime import datetime
from typing import Callable, List, Optional
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import NoteSyncDB, InputError, NotFoundError
from notesync_Server_API.app.core.DB_Management.Entity_Models import Note, Folder, utc_now
from notesync_Server_API.app.core.DB_Management.Entity_Stores import NoteStore, FolderStore, FieldPatch
from notesync_Server_API.app.core.Notes.Folder_Tree import FolderTreeIndex
from notesync_Server_API.app.core.Notes.Cascade_Lifecycle import CascadeLifecycleManager, CascadeResult
#
########################################################################################################################
#
# Functions:

DEFAULT_NOTE_TITLE = "Untitled"


class NotesService:
    """
    Entry point for everything the API does with notes and folders.

    All methods are synchronous and owner-scoped; the API layer runs them in a worker thread.
    """

    def __init__(self, db: NoteSyncDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.note_store = NoteStore(db)
        self.folder_store = FolderStore(db)
        self.tree = FolderTreeIndex(self.folder_store)
        self.cascade = CascadeLifecycleManager(db, self.note_store, self.folder_store, self.tree, clock=clock)

    # --- Helpers ---
    def _require_active_folder(self, conn, owner_user_id: str, folder_id: str) -> Folder:
        folder = self.folder_store.get(conn, owner_user_id, folder_id)
        if folder is None:
            raise NotFoundError("Folder not found.", entity="folder", entity_id=folder_id)
        return folder

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        if name is None or not str(name).strip():
            raise InputError("Folder name cannot be empty.")
        return str(name).strip()

    # --- Notes ---
    def create_note(self, owner_user_id: str, title: Optional[str] = None, content: str = "",
                    folder_id: Optional[str] = None, note_id: Optional[str] = None) -> Note:
        title = title.strip() if title and title.strip() else DEFAULT_NOTE_TITLE
        with self.db.transaction(immediate=True) as conn:
            if folder_id is not None:
                self._require_active_folder(conn, owner_user_id, folder_id)
            now = self.clock()
            note = Note(
                id=note_id or str(uuid.uuid4()),
                owner_user_id=owner_user_id,
                title=title,
                content=content or "",
                folder_id=folder_id,
                created_at=now,
                updated_at=now,
            )
            self.note_store.insert(conn, note)
        logger.info(f"Note '{note.id}' created for owner '{owner_user_id}'.")
        return note

    def get_note(self, owner_user_id: str, note_id: str, include_deleted: bool = False) -> Note:
        with self.db.transaction() as conn:
            note = self.note_store.get(conn, owner_user_id, note_id, include_deleted=include_deleted)
        if note is None:
            raise NotFoundError("Note not found.", entity="note", entity_id=note_id)
        return note

    def list_notes(self, owner_user_id: str, folder_id: Optional[str] = None, root_only: bool = False,
                   limit: Optional[int] = None, offset: int = 0) -> List[Note]:
        """Active notes: all of them, those directly in `folder_id`, or (root_only) those at root level."""
        with self.db.transaction() as conn:
            if folder_id is not None or root_only:
                notes = self.note_store.list_in_folder(conn, owner_user_id, folder_id)
                if limit is not None:
                    notes = notes[offset:offset + limit]
                return notes
            return self.note_store.list_for_owner(conn, owner_user_id, limit=limit, offset=offset)

    def update_note(self, owner_user_id: str, note_id: str, patch: FieldPatch) -> Note:
        if not patch:
            return self.get_note(owner_user_id, note_id)
        patch = dict(patch)
        if "title" in patch:
            title = patch["title"]
            patch["title"] = title.strip() if title and title.strip() else DEFAULT_NOTE_TITLE
        if "content" in patch and patch["content"] is None:
            patch["content"] = ""
        with self.db.transaction(immediate=True) as conn:
            if patch.get("folder_id") is not None:
                self._require_active_folder(conn, owner_user_id, patch["folder_id"])
            note = self.note_store.update(conn, owner_user_id, note_id, patch, self.clock())
            if note is None:
                raise NotFoundError("Note not found.", entity="note", entity_id=note_id)
        logger.info(f"Note '{note_id}' updated for owner '{owner_user_id}' (fields: {sorted(patch)}).")
        return note

    def delete_note(self, owner_user_id: str, note_id: str, permanent: bool = False) -> None:
        with self.db.transaction(immediate=True) as conn:
            existing = self.note_store.get(conn, owner_user_id, note_id, include_deleted=True)
            if existing is None:
                raise NotFoundError("Note not found.", entity="note", entity_id=note_id)
            self.note_store.delete_many(conn, owner_user_id, [note_id], self.clock(), hard=permanent)
        logger.info(f"Note '{note_id}' {'permanently ' if permanent else 'soft-'}deleted for owner '{owner_user_id}'.")

    def restore_note(self, owner_user_id: str, note_id: str) -> Note:
        with self.db.transaction(immediate=True) as conn:
            existing = self.note_store.get(conn, owner_user_id, note_id, include_deleted=True)
            if existing is None:
                raise NotFoundError("Note not found.", entity="note", entity_id=note_id)
            self.note_store.restore_many(conn, owner_user_id, [note_id], self.clock())
            note = self.note_store.get(conn, owner_user_id, note_id)
        logger.info(f"Note '{note_id}' restored for owner '{owner_user_id}'.")
        return note

    def delete_all_notes(self, owner_user_id: str, permanent: bool = True) -> int:
        return self.cascade.delete_all_notes(owner_user_id, hard=permanent)

    # --- Folders ---
    def create_folder(self, owner_user_id: str, name: str, parent_id: Optional[str] = None,
                      folder_id: Optional[str] = None) -> Folder:
        name = self._clean_name(name)
        with self.db.transaction(immediate=True) as conn:
            if parent_id is not None:
                self._require_active_folder(conn, owner_user_id, parent_id)
            now = self.clock()
            folder = Folder(
                id=folder_id or str(uuid.uuid4()),
                owner_user_id=owner_user_id,
                name=name,
                parent_id=parent_id,
                created_at=now,
                updated_at=now,
            )
            self.folder_store.insert(conn, folder)
        logger.info(f"Folder '{folder.id}' created for owner '{owner_user_id}'.")
        return folder

    def get_folder(self, owner_user_id: str, folder_id: str, include_deleted: bool = False) -> Folder:
        with self.db.transaction() as conn:
            folder = self.folder_store.get(conn, owner_user_id, folder_id, include_deleted=include_deleted)
        if folder is None:
            raise NotFoundError("Folder not found.", entity="folder", entity_id=folder_id)
        return folder

    def list_folders(self, owner_user_id: str, parent_id: Optional[str] = None,
                     root_only: bool = False) -> List[Folder]:
        with self.db.transaction() as conn:
            if parent_id is not None or root_only:
                return self.folder_store.list_children(conn, owner_user_id, parent_id)
            return self.folder_store.list_for_owner(conn, owner_user_id)

    def update_folder(self, owner_user_id: str, folder_id: str, patch: FieldPatch) -> Folder:
        if not patch:
            return self.get_folder(owner_user_id, folder_id)
        patch = dict(patch)
        if "name" in patch:
            patch["name"] = self._clean_name(patch["name"])
        with self.db.transaction(immediate=True) as conn:
            new_parent = patch.get("parent_id")
            if new_parent is not None:
                self._require_active_folder(conn, owner_user_id, new_parent)
                if self.tree.would_create_cycle(conn, owner_user_id, folder_id, new_parent):
                    raise InputError("A folder cannot be moved into itself or one of its descendants.")
            folder = self.folder_store.update(conn, owner_user_id, folder_id, patch, self.clock())
            if folder is None:
                raise NotFoundError("Folder not found.", entity="folder", entity_id=folder_id)
        logger.info(f"Folder '{folder_id}' updated for owner '{owner_user_id}' (fields: {sorted(patch)}).")
        return folder

    def delete_folder(self, owner_user_id: str, folder_id: str, permanent: bool = False) -> CascadeResult:
        return self.cascade.delete_folder(owner_user_id, folder_id, hard=permanent)

    def restore_folder(self, owner_user_id: str, folder_id: str) -> CascadeResult:
        return self.cascade.restore_folder(owner_user_id, folder_id)

    def delete_all_folders(self, owner_user_id: str, permanent: bool = True) -> CascadeResult:
        return self.cascade.delete_all_folders(owner_user_id, hard=permanent)

#
# End of Notes_Library.py
#######################################################################################################################
