# Folder_Tree.py
# Description: Descendant/ancestor queries over one owner's folder forest.
#
# Imports
import sqlite3
from collections import deque
from typing import Dict, List, Optional, Set
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.Entity_Stores import FolderStore
#
########################################################################################################################
#
# Functions:


class FolderTreeIndex:
    """
    Loads the owner's (id, parent_id) pairs into an in-memory arena and walks it.

    Soft-deleted folders are part of the arena, since cascades delete and restore them.
    Every walk keeps a visited set, so a corrupted parent chain terminates instead of looping.
    """

    def __init__(self, folder_store: FolderStore):
        self.folder_store = folder_store

    def _load(self, conn: sqlite3.Connection, owner_user_id: str):
        parents: Dict[str, Optional[str]] = {}
        children: Dict[str, List[str]] = {}
        for folder_id, parent_id in self.folder_store.parent_links(conn, owner_user_id):
            parents[folder_id] = parent_id
            if parent_id is not None:
                children.setdefault(parent_id, []).append(folder_id)
        for child_ids in children.values():
            child_ids.sort()
        return parents, children

    def descendants(self, conn: sqlite3.Connection, owner_user_id: str, root_folder_id: str) -> List[str]:
        """
        Breadth-first list of every folder below `root_folder_id`, root excluded.

        A root that does not exist, or belongs to another owner, yields an empty list.
        """
        parents, children = self._load(conn, owner_user_id)
        if root_folder_id not in parents:
            return []

        visited: Set[str] = {root_folder_id}
        ordered: List[str] = []
        queue = deque([root_folder_id])
        while queue:
            current = queue.popleft()
            for child_id in children.get(current, ()):
                if child_id in visited:
                    logger.warning(f"Folder cycle detected at '{child_id}' for owner '{owner_user_id}'; pruning branch.")
                    continue
                visited.add(child_id)
                ordered.append(child_id)
                queue.append(child_id)
        return ordered

    def ancestors(self, conn: sqlite3.Connection, owner_user_id: str, folder_id: str) -> List[str]:
        """Parent chain of `folder_id`, nearest first. Stops at a root, a foreign/missing id, or a revisit."""
        parents, _ = self._load(conn, owner_user_id)
        chain: List[str] = []
        seen: Set[str] = {folder_id}
        current = parents.get(folder_id)
        while current is not None and current in parents and current not in seen:
            chain.append(current)
            seen.add(current)
            current = parents[current]
        return chain

    def would_create_cycle(self, conn: sqlite3.Connection, owner_user_id: str, folder_id: str,
                           new_parent_id: Optional[str]) -> bool:
        """True if re-parenting `folder_id` under `new_parent_id` would make it its own ancestor."""
        if new_parent_id is None:
            return False
        if new_parent_id == folder_id:
            return True
        return folder_id in self.ancestors(conn, owner_user_id, new_parent_id)

#
# End of Folder_Tree.py
#######################################################################################################################
