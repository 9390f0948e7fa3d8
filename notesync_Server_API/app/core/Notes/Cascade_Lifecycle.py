# Cascade_Lifecycle.py
# Description: Atomic delete/restore of a folder subtree together with the notes it contains.
#
# Imports
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import NoteSyncDB, NotFoundError
from notesync_Server_API.app.core.DB_Management.Entity_Models import utc_now
from notesync_Server_API.app.core.DB_Management.Entity_Stores import NoteStore, FolderStore
from notesync_Server_API.app.core.Notes.Folder_Tree import FolderTreeIndex
#
########################################################################################################################
#
# Functions:


@dataclass
class CascadeResult:
    folder_ids: List[str]
    folders_affected: int
    notes_affected: int


class CascadeLifecycleManager:
    """
    Deletes or restores a folder, all of its descendant folders, and every note inside them,
    as one transaction. Either everything in the subtree changes or nothing does.
    """

    def __init__(self, db: NoteSyncDB, note_store: NoteStore, folder_store: FolderStore,
                 tree: FolderTreeIndex, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.note_store = note_store
        self.folder_store = folder_store
        self.tree = tree
        self.clock = clock

    def _subtree(self, conn, owner_user_id: str, folder_id: str) -> List[str]:
        target = self.folder_store.get(conn, owner_user_id, folder_id, include_deleted=True)
        if target is None:
            raise NotFoundError("Folder not found.", entity="folder", entity_id=folder_id)
        return [folder_id] + self.tree.descendants(conn, owner_user_id, folder_id)

    def delete_folder(self, owner_user_id: str, folder_id: str, hard: bool = False) -> CascadeResult:
        with self.db.transaction(immediate=True) as conn:
            all_folders = self._subtree(conn, owner_user_id, folder_id)
            now = self.clock()
            if hard:
                notes = self.note_store.hard_delete_by_folder_ids(conn, owner_user_id, all_folders)
                folders = self.folder_store.hard_delete_many(conn, owner_user_id, all_folders)
            else:
                notes = self.note_store.soft_delete_by_folder_ids(conn, owner_user_id, all_folders, now)
                folders = self.folder_store.soft_delete_many(conn, owner_user_id, all_folders, now)
        logger.info(
            f"{'Hard' if hard else 'Soft'}-deleted folder '{folder_id}' for owner '{owner_user_id}': "
            f"{folders} folder(s), {notes} note(s).")
        return CascadeResult(folder_ids=all_folders, folders_affected=folders, notes_affected=notes)

    def restore_folder(self, owner_user_id: str, folder_id: str) -> CascadeResult:
        # Restores the whole subtree, including items that were deleted independently before the cascade.
        with self.db.transaction(immediate=True) as conn:
            all_folders = self._subtree(conn, owner_user_id, folder_id)
            now = self.clock()
            notes = self.note_store.restore_by_folder_ids(conn, owner_user_id, all_folders, now)
            folders = self.folder_store.restore_many(conn, owner_user_id, all_folders, now)
        logger.info(f"Restored folder '{folder_id}' for owner '{owner_user_id}': "
                    f"{folders} folder(s), {notes} note(s).")
        return CascadeResult(folder_ids=all_folders, folders_affected=folders, notes_affected=notes)

    def delete_all_notes(self, owner_user_id: str, hard: bool = True) -> int:
        with self.db.transaction(immediate=True) as conn:
            count = self.note_store.delete_all_for_owner(conn, owner_user_id, self.clock(), hard=hard)
        logger.info(f"Deleted all {count} note(s) for owner '{owner_user_id}' (hard={hard}).")
        return count

    def delete_all_folders(self, owner_user_id: str, hard: bool = True) -> CascadeResult:
        """Removes every folder of the owner, and first every note living in one. Root-level notes survive."""
        with self.db.transaction(immediate=True) as conn:
            now = self.clock()
            notes = self.note_store.delete_all_in_folders(conn, owner_user_id, now, hard=hard)
            folders = self.folder_store.delete_all_for_owner(conn, owner_user_id, now, hard=hard)
        logger.info(f"Deleted all folders for owner '{owner_user_id}' (hard={hard}): "
                    f"{folders} folder(s), {notes} note(s).")
        return CascadeResult(folder_ids=[], folders_affected=folders, notes_affected=notes)

#
# End of Cascade_Lifecycle.py
#######################################################################################################################
