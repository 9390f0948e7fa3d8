# NoteSync_DB_Deps.py
# Description: FastAPI dependencies providing the shared NoteSyncDB, the caller's owner id, and the services.
#
# Imports
import sqlite3
import threading
from pathlib import Path
from typing import Optional
#
# 3rd-party Libraries
from cachetools import LRUCache
from fastapi import Depends, HTTPException, status
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.core.config import settings
from notesync_Server_API.app.core.AuthNZ.User_DB_Handling import get_request_user, User
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import NoteSyncDB, NoteSyncDBError
from notesync_Server_API.app.core.Notes.Notes_Library import NotesService
from notesync_Server_API.app.core.Chat.Conversations_Library import ConversationsService
from notesync_Server_API.app.core.Sync import SyncEngine
#
#######################################################################################################################

# --- Global Cache for NoteSyncDB Instances ---
# Keyed by resolved DB path; normally holds the single configured store.
MAX_CACHED_NOTESYNC_DB_INSTANCES = 4
_notesync_db_instances: LRUCache = LRUCache(maxsize=MAX_CACHED_NOTESYNC_DB_INSTANCES)
_notesync_db_lock = threading.Lock()


def _db_path() -> Path:
    return Path(settings["NOTESYNC_DB_PATH"]).resolve()


def get_notesync_db() -> NoteSyncDB:
    """Returns the cached NoteSyncDB for the configured path, creating it (and its schema) on first use."""
    db_path = _db_path()
    cache_key = str(db_path)

    with _notesync_db_lock:
        db_instance: Optional[NoteSyncDB] = _notesync_db_instances.get(cache_key)

    if db_instance is not None:
        try:
            db_instance.get_connection().execute("SELECT 1")
            return db_instance
        except (NoteSyncDBError, sqlite3.Error) as e:
            logger.warning(f"Cached NoteSyncDB instance at {cache_key} seems inactive ({e}). Re-initializing.")
            with _notesync_db_lock:
                if _notesync_db_instances.get(cache_key) is db_instance:
                    _notesync_db_instances.pop(cache_key, None)

    with _notesync_db_lock:
        db_instance = _notesync_db_instances.get(cache_key)
        if db_instance is not None:
            return db_instance
        try:
            logger.info(f"Initializing NoteSyncDB at path: {db_path}")
            db_instance = NoteSyncDB(db_path)
        except NoteSyncDBError as e:
            logger.error(f"Failed to initialize NoteSyncDB at {db_path}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not initialize the notes database."
            ) from e
        _notesync_db_instances[cache_key] = db_instance
    return db_instance


async def get_owner_user_id(current_user: User = Depends(get_request_user)) -> str:
    if not current_user or not current_user.id:
        logger.error("Request reached an owner-scoped endpoint without a usable user identity.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User identification failed.")
    return str(current_user.id)


def get_notes_service(db: NoteSyncDB = Depends(get_notesync_db)) -> NotesService:
    return NotesService(db)


def get_conversations_service(db: NoteSyncDB = Depends(get_notesync_db)) -> ConversationsService:
    return ConversationsService(db)


def get_sync_engine(db: NoteSyncDB = Depends(get_notesync_db)) -> SyncEngine:
    return SyncEngine(db, max_batch_items=settings["SYNC_MAX_BATCH_ITEMS"])


def close_all_notesync_db_instances():
    """Closes all cached NoteSyncDB connections. Called on application shutdown."""
    with _notesync_db_lock:
        logger.info(f"Closing all cached NoteSyncDB instances ({len(_notesync_db_instances)})...")
        for cache_key, db_instance in list(_notesync_db_instances.items()):
            db_instance.close_connection()
            logger.info(f"Closed NoteSyncDB instance at {cache_key}.")
        _notesync_db_instances.clear()

#
# End of NoteSync_DB_Deps.py
#######################################################################################################################
