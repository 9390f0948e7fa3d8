# NoteSync_DB.py
# Description: DB Library for the shared notes/folders/conversations store used by sync and cascade operations.
#
# Imports
import sqlite3
import threading
import logging
from pathlib import Path
from typing import List, Dict, Optional, Any, Union
#
# Third-Party Libraries
#
# Local Imports
#
########################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)


# --- Custom Exceptions ---
class NoteSyncDBError(Exception):
    """Base exception for NoteSyncDB related errors (store/infra failures)."""
    pass


class SchemaError(NoteSyncDBError):
    """Exception for schema version mismatches or migration failures."""
    pass


class InputError(ValueError):
    """Custom exception for input validation errors."""
    pass


class NotFoundError(NoteSyncDBError):
    """The requested entity does not exist or is not owned by the caller."""

    def __init__(self, message="Entity not found.", entity: Optional[str] = None, entity_id: Any = None):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(NoteSyncDBError):
    """Indicates a unique constraint conflict, e.g. an explicit create with an id that already exists."""

    def __init__(self, message="Conflict detected.", entity: Optional[str] = None, entity_id: Any = None):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id

    def __str__(self):
        base = super().__str__()
        details = []
        if self.entity:
            details.append(f"Entity: {self.entity}")
        if self.entity_id:
            details.append(f"ID: {self.entity_id}")
        return f"{base} ({', '.join(details)})" if details else base


# --- Database Class ---
class NoteSyncDB:
    """
    Manages the SQLite connection, schema and transactions for the shared entity store.

    One instance serves every owner; all owner scoping happens in the entity stores
    (see Entity_Stores.py). Connections are thread-local so that worker threads
    spawned by the API layer each get their own handle.
    """
    _CURRENT_SCHEMA_VERSION = 1
    _SCHEMA_NAME = "notesync_schema"

    _FULL_SCHEMA_SQL_V1 = f"""
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS db_schema_version(
  schema_name TEXT PRIMARY KEY NOT NULL,
  version INTEGER NOT NULL
);
INSERT OR IGNORE INTO db_schema_version (schema_name, version) VALUES ('{_SCHEMA_NAME}', 0);

CREATE TABLE IF NOT EXISTS conversations(
  id TEXT PRIMARY KEY,
  owner_user_id TEXT NOT NULL,
  title TEXT NOT NULL DEFAULT '',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  deleted_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_conversations_owner_updated ON conversations(owner_user_id, updated_at);

CREATE TABLE IF NOT EXISTS messages(
  id TEXT PRIMARY KEY,
  owner_user_id TEXT NOT NULL,
  conversation_id TEXT NOT NULL,
  role TEXT NOT NULL CHECK(role IN ('user','assistant','system')),
  content TEXT NOT NULL DEFAULT '',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  deleted_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_messages_owner_updated ON messages(owner_user_id, updated_at);
CREATE INDEX IF NOT EXISTS idx_messages_owner_conversation ON messages(owner_user_id, conversation_id);

CREATE TABLE IF NOT EXISTS folders(
  id TEXT PRIMARY KEY,
  owner_user_id TEXT NOT NULL,
  name TEXT NOT NULL,
  parent_id TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  deleted_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_folders_owner_updated ON folders(owner_user_id, updated_at);
CREATE INDEX IF NOT EXISTS idx_folders_owner_parent ON folders(owner_user_id, parent_id);

CREATE TABLE IF NOT EXISTS notes(
  id TEXT PRIMARY KEY,
  owner_user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  content TEXT NOT NULL DEFAULT '',
  folder_id TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  deleted_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_notes_owner_updated ON notes(owner_user_id, updated_at);
CREATE INDEX IF NOT EXISTS idx_notes_owner_folder ON notes(owner_user_id, folder_id);

UPDATE db_schema_version SET version = 1 WHERE schema_name = '{_SCHEMA_NAME}' AND version = 0;
"""

    def __init__(self, db_path: Union[str, Path]):
        if isinstance(db_path, Path):
            self.is_memory_db = False
            self.db_path = db_path.resolve()
        else:
            self.is_memory_db = (db_path == ':memory:')
            self.db_path = Path(db_path).resolve() if not self.is_memory_db else Path(":memory:")
        self.db_path_str = str(self.db_path) if not self.is_memory_db else ':memory:'

        if not self.is_memory_db:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise NoteSyncDBError(f"Failed to create database directory {self.db_path.parent}: {e}") from e

        logger.info(f"Initializing NoteSyncDB for path: {self.db_path_str}")
        self._local = threading.local()
        try:
            self._initialize_schema()
            logger.debug(f"NoteSyncDB initialization completed successfully for {self.db_path_str}")
        except (NoteSyncDBError, sqlite3.Error) as e:
            logger.critical(f"FATAL: DB Initialization failed for {self.db_path_str}: {e}", exc_info=True)
            self.close_connection()
            if isinstance(e, SchemaError):
                raise
            raise NoteSyncDBError(f"Database initialization failed: {e}") from e

    # --- Connection Management ---
    def _get_thread_connection(self) -> sqlite3.Connection:
        conn = getattr(self._local, 'conn', None)
        if conn:
            try:
                conn.execute("SELECT 1")
            except (sqlite3.ProgrammingError, sqlite3.OperationalError):
                logger.warning(
                    f"Thread-local connection for {self.db_path_str} was closed or became unusable. Reopening.")
                try:
                    conn.close()
                except sqlite3.Error as close_err:
                    logger.debug(f"Ignoring error while closing stale connection: {close_err}")
                conn = None

        if not conn:
            try:
                conn = sqlite3.connect(
                    self.db_path_str,
                    check_same_thread=False,
                    timeout=15
                )
                conn.row_factory = sqlite3.Row
                if not self.is_memory_db:
                    conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA foreign_keys = ON;")
                self._local.conn = conn
                logger.debug(f"Opened SQLite connection to {self.db_path_str} for thread {threading.get_ident()}")
            except sqlite3.Error as e:
                logger.error(f"Failed to connect to database {self.db_path_str}: {e}", exc_info=True)
                self._local.conn = None
                raise NoteSyncDBError(f"Failed to connect to database '{self.db_path_str}': {e}") from e
        return self._local.conn

    def get_connection(self) -> sqlite3.Connection:
        return self._get_thread_connection()

    def close_connection(self):
        conn = getattr(self._local, 'conn', None)
        if conn is not None:
            try:
                if conn.in_transaction:
                    logger.warning(
                        f"Connection to {self.db_path_str} is in an uncommitted transaction during close. Rolling back.")
                    conn.rollback()
                if not self.is_memory_db and not conn.in_transaction:
                    conn.execute("PRAGMA wal_checkpoint(TRUNCATE);")
                conn.close()
                logger.debug(f"Closed connection for thread {threading.get_ident()} to {self.db_path_str}.")
            except sqlite3.Error as e:
                logger.warning(f"Error during SQLite connection close for {self.db_path_str}: {e}")
            finally:
                self._local.conn = None

    # --- Query Execution ---
    def execute_query(self, query: str, params: Optional[Union[tuple, list, Dict[str, Any]]] = None, *,
                      commit: bool = False, script: bool = False) -> sqlite3.Cursor:
        conn = self.get_connection()
        # A transaction opened by transaction() is committed there, not here.
        owns_commit = not conn.in_transaction
        try:
            cursor = conn.cursor()
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Executing SQL (script={script}): {query[:300]}... Params: {str(params)[:200]}...")

            if script:
                cursor.executescript(query)
            else:
                cursor.execute(query, params or ())

            if commit and owns_commit and conn.in_transaction:
                conn.commit()
            return cursor
        except sqlite3.IntegrityError as e:
            self._discard_implicit_transaction(conn, owns_commit)
            logger.warning(f"Integrity constraint violation: {query[:300]}... Error: {e}")
            if "unique constraint failed" in str(e).lower():
                raise ConflictError(message=f"Unique constraint violation: {e}") from e
            raise NoteSyncDBError(f"Database constraint violation: {e}") from e
        except sqlite3.Error as e:
            self._discard_implicit_transaction(conn, owns_commit)
            logger.error(f"Query execution failed: {query[:300]}... Error: {e}", exc_info=True)
            raise NoteSyncDBError(f"Query execution failed: {e}") from e

    @staticmethod
    def _discard_implicit_transaction(conn: sqlite3.Connection, owns_commit: bool):
        # A failed standalone statement must not leave an implicit transaction open on this thread.
        if owns_commit and conn.in_transaction:
            conn.rollback()

    def fetch_all(self, query: str, params: Optional[Union[tuple, list, Dict[str, Any]]] = None) -> List[sqlite3.Row]:
        return self.execute_query(query, params).fetchall()

    def fetch_one(self, query: str, params: Optional[Union[tuple, list, Dict[str, Any]]] = None) -> Optional[sqlite3.Row]:
        return self.execute_query(query, params).fetchone()

    # --- Transaction Context ---
    def transaction(self, immediate: bool = False) -> 'TransactionContextManager':
        """
        Returns a context manager wrapping one atomic unit of work.

        `immediate=True` takes the write lock up front (BEGIN IMMEDIATE); every
        multi-row write path (push, cascades) uses it so concurrent writers are
        serialized instead of failing on lock upgrade.
        """
        return TransactionContextManager(self, immediate=immediate)

    # --- Schema Initialization ---
    def _get_db_version(self, conn: sqlite3.Connection) -> int:
        try:
            cursor = conn.execute("SELECT version FROM db_schema_version WHERE schema_name = ? LIMIT 1",
                                  (self._SCHEMA_NAME,))
            result = cursor.fetchone()
            return result['version'] if result else 0
        except sqlite3.Error as e:
            if "no such table" in str(e).lower():
                return 0
            logger.error(f"Could not determine database schema version for '{self._SCHEMA_NAME}': {e}", exc_info=True)
            raise SchemaError(f"Could not determine schema version for '{self._SCHEMA_NAME}': {e}") from e

    def _apply_schema_v1(self, conn: sqlite3.Connection):
        logger.info(f"Applying schema Version {self._CURRENT_SCHEMA_VERSION} for '{self._SCHEMA_NAME}' to DB: {self.db_path_str}...")
        try:
            conn.executescript(self._FULL_SCHEMA_SQL_V1)
            final_version = self._get_db_version(conn)
            if final_version != self._CURRENT_SCHEMA_VERSION:
                raise SchemaError(
                    f"[{self._SCHEMA_NAME}] Schema version update check failed. Expected {self._CURRENT_SCHEMA_VERSION}, got: {final_version}")
        except sqlite3.Error as e:
            logger.error(f"[{self._SCHEMA_NAME} V1] Schema application failed: {e}", exc_info=True)
            raise SchemaError(f"DB schema V1 setup failed for '{self._SCHEMA_NAME}': {e}") from e

    def _initialize_schema(self):
        conn = self.get_connection()
        current_db_version = self._get_db_version(conn)
        target_version = self._CURRENT_SCHEMA_VERSION
        logger.info(
            f"Checking DB schema '{self._SCHEMA_NAME}'. Current version: {current_db_version}. Code supports: {target_version}")

        if current_db_version == target_version:
            logger.debug(f"Database schema '{self._SCHEMA_NAME}' is up to date.")
            return
        if current_db_version > target_version:
            raise SchemaError(
                f"Database schema '{self._SCHEMA_NAME}' version ({current_db_version}) is newer than supported by code ({target_version}). Aborting.")

        # Only a fresh database can reach this point while there is a single schema version.
        self._apply_schema_v1(conn)
        logger.info(f"Database schema '{self._SCHEMA_NAME}' initialized to version {target_version}.")

    def get_schema_version(self) -> int:
        return self._get_db_version(self.get_connection())


class TransactionContextManager:
    def __init__(self, db_instance: NoteSyncDB, immediate: bool = False):
        self.db = db_instance
        self.immediate = immediate
        self.conn: Optional[sqlite3.Connection] = None
        self.is_outermost_transaction = False

    def __enter__(self) -> sqlite3.Connection:
        self.conn = self.db.get_connection()
        if not self.conn.in_transaction:
            try:
                self.conn.execute("BEGIN IMMEDIATE" if self.immediate else "BEGIN")
            except sqlite3.Error as e:
                logger.error(f"Could not begin transaction on {self.db.db_path_str}: {e}")
                raise NoteSyncDBError(f"Could not begin transaction: {e}") from e
            self.is_outermost_transaction = True
            logger.debug(f"Transaction started (outermost, immediate={self.immediate}) on thread {threading.get_ident()}.")
        else:
            # Nested blocks join the outer transaction; only the outermost commits or rolls back.
            logger.debug(f"Entering nested transaction block on thread {threading.get_ident()}.")
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.conn:
            logger.error("Transaction context: Connection is None in __exit__.")
            return False

        if self.is_outermost_transaction:
            if exc_type:
                logger.error(
                    f"Transaction (outermost) failed, rolling back on thread {threading.get_ident()}: {exc_type.__name__} - {exc_val}")
                try:
                    self.conn.rollback()
                except sqlite3.Error as rb_err:
                    logger.critical(f"Rollback FAILED on thread {threading.get_ident()}: {rb_err}", exc_info=True)
            else:
                try:
                    self.conn.commit()
                    logger.debug(f"Transaction (outermost) committed on thread {threading.get_ident()}.")
                except sqlite3.Error as commit_err:
                    logger.error(f"Commit FAILED on thread {threading.get_ident()}, attempting rollback: {commit_err}",
                                 exc_info=True)
                    try:
                        self.conn.rollback()
                    except sqlite3.Error as rb_err_after_commit_fail:
                        logger.critical(
                            f"Rollback after failed commit also FAILED on thread {threading.get_ident()}: {rb_err_after_commit_fail}",
                            exc_info=True)
                    raise NoteSyncDBError(f"Commit failed: {commit_err}") from commit_err
        elif exc_type:
            logger.debug(
                f"Exception in nested transaction block on thread {threading.get_ident()}: {exc_type.__name__}. Outer block handles rollback.")

        return False

#
# End of NoteSync_DB.py
#######################################################################################################################
