# test_user_handling.py
#
#
# Imports
#
# Third-Party Imports
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
#
# Local Imports
from notesync_Server_API.app.core.config import settings
from notesync_Server_API.app.core.AuthNZ.User_DB_Handling import User, get_request_user
from notesync_Server_API.app.core.Security.Security import create_access_token, decode_access_token
#
#######################################################################################################################
#
# Functions:


@pytest.fixture
def whoami_client():
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(user: User = Depends(get_request_user)):
        return {"id": user.id}

    return TestClient(app)


@pytest.fixture
def single_user(monkeypatch):
    monkeypatch.setitem(settings, "SINGLE_USER_MODE", True)
    monkeypatch.setitem(settings, "SINGLE_USER_API_KEY", "test-key")
    monkeypatch.setitem(settings, "SINGLE_USER_FIXED_ID", "solo")


@pytest.fixture
def multi_user(monkeypatch):
    monkeypatch.setitem(settings, "SINGLE_USER_MODE", False)
    monkeypatch.setitem(settings, "JWT_SECRET_KEY", "unit-test-secret-0123456789abcdef0123456789")
    monkeypatch.setitem(settings, "JWT_ALGORITHM", "HS256")


class TestSingleUserMode:
    def test_valid_key(self, single_user, whoami_client):
        resp = whoami_client.get("/whoami", headers={"X-API-KEY": "test-key"})
        assert resp.status_code == 200
        assert resp.json() == {"id": "solo"}

    def test_missing_key(self, single_user, whoami_client):
        assert whoami_client.get("/whoami").status_code == 401

    def test_wrong_key(self, single_user, whoami_client):
        assert whoami_client.get("/whoami", headers={"X-API-KEY": "nope"}).status_code == 401


class TestMultiUserMode:
    def test_token_subject_becomes_owner(self, multi_user, whoami_client):
        token = create_access_token({"user_id": "alice-42"})
        resp = whoami_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json() == {"id": "alice-42"}

    def test_missing_token(self, multi_user, whoami_client):
        resp = whoami_client.get("/whoami")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_expired_token(self, multi_user, whoami_client):
        token = create_access_token({"user_id": "alice-42"}, expires_delta_minutes=-1)
        assert decode_access_token(token) is None
        resp = whoami_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_token_signed_with_other_key(self, multi_user, whoami_client, monkeypatch):
        token = create_access_token({"user_id": "mallory"})
        monkeypatch.setitem(settings, "JWT_SECRET_KEY", "rotated-secret-0123456789abcdef0123456789abc")
        resp = whoami_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_token_requires_user_id(self, multi_user):
        with pytest.raises(ValueError):
            create_access_token({"name": "nobody"})
