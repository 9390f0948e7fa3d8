# tests/conftest.py
#
# Imports
import pytest
from datetime import datetime, timedelta, timezone
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import NoteSyncDB
#
#######################################################################################################################
#
# Fixtures:


def ts(value: str) -> datetime:
    """'2024-01-01T00:00:00' -> aware UTC datetime."""
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


class SteppingClock:
    """Deterministic clock for services; returns `now` until told otherwise."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime):
        self.now = value

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def db_path(tmp_path):
    """Provides a temporary path for the database file for each test."""
    return tmp_path / "notesync_test.sqlite"


@pytest.fixture
def db_instance(db_path):
    """A fresh file-backed NoteSyncDB per test."""
    db = NoteSyncDB(db_path)
    yield db
    db.close_connection()


@pytest.fixture
def clock():
    return SteppingClock(ts("2024-01-01T00:00:00"))


@pytest.fixture
def owner():
    return "user-a"


@pytest.fixture
def other_owner():
    return "user-b"


@pytest.fixture
def api_client(db_instance):
    """
    TestClient bound to a temporary store. The caller's identity comes from the X-Test-Owner header
    (default "user-a") so tests can act as several owners without real credentials.
    """
    from fastapi import Header
    from fastapi.testclient import TestClient
    from notesync_Server_API.app.main import app
    from notesync_Server_API.app.api.v1.API_Deps.NoteSync_DB_Deps import get_notesync_db, get_owner_user_id

    async def owner_from_header(x_test_owner: str = Header("user-a")) -> str:
        return x_test_owner

    app.dependency_overrides[get_notesync_db] = lambda: db_instance
    app.dependency_overrides[get_owner_user_id] = owner_from_header
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
