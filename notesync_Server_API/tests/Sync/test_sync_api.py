# test_sync_api.py
#
#
# Imports
#
#######################################################################################################################
#
# Functions:

PULL = "/api/v1/sync/pull"
PUSH = "/api/v1/sync/push"


def test_pull_empty_store(api_client):
    resp = api_client.get(PULL)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["notes"] == [] and body["folders"] == []
    assert body["conversations"] == [] and body["messages"] == []
    assert body["serverTime"].endswith("Z")


def test_push_then_pull_round_trip(api_client):
    payload = {
        "folders": [{"id": "f1", "name": "Work", "updatedAt": "2024-01-01T00:00:00Z"}],
        "notes": [{"id": "n1", "title": "Plan", "content": "...", "folderId": "f1",
                   "updatedAt": "2024-01-01T00:00:00Z"}],
    }
    resp = api_client.post(PUSH, json=payload)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["stats"]["notes"] == {"created": 1, "updated": 0, "skipped": 0}
    assert body["stats"]["folders"]["created"] == 1

    pulled = api_client.get(PULL, params={"since": "2024-01-01T00:00:00Z"}).json()
    [note] = pulled["notes"]
    assert note["folderId"] == "f1"
    assert note["ownerUserId"] == "user-a"
    assert note["updatedAt"] == "2024-01-01T00:00:00.000000Z"

    later = api_client.get(PULL, params={"since": "2024-01-01T00:00:01Z"}).json()
    assert later["notes"] == []


def test_pull_is_owner_scoped(api_client):
    api_client.post(PUSH, json={"notes": [{"id": "n1", "updatedAt": "2024-01-01T00:00:00Z"}]})
    other = api_client.get(PULL, headers={"X-Test-Owner": "user-b"}).json()
    assert other["notes"] == []


def test_bad_since_is_400(api_client):
    resp = api_client.get(PULL, params={"since": "last tuesday"})
    assert resp.status_code == 400


def test_push_without_updated_at_is_422(api_client):
    resp = api_client.post(PUSH, json={"notes": [{"id": "n1", "title": "x"}]})
    assert resp.status_code == 422


def test_stale_push_keeps_server_copy(api_client):
    api_client.post(PUSH, json={"notes": [{"id": "n2", "title": "Fresh", "updatedAt": "2023-01-01T01:00:00Z"}]})
    resp = api_client.post(PUSH, json={"notes": [{"id": "n2", "title": "Stale", "updatedAt": "2023-01-01T00:00:00Z"}]})
    assert resp.json()["stats"]["notes"]["skipped"] == 1
    assert api_client.get("/api/v1/notes/n2").json()["title"] == "Fresh"


def test_early_year_timestamp_round_trips(api_client):
    resp = api_client.post(PUSH, json={"notes": [{"id": "n-old", "updatedAt": "0500-01-01T00:00:00Z"}]})
    assert resp.status_code == 200, resp.text
    [note] = api_client.get(PULL).json()["notes"]
    assert note["updatedAt"] == "0500-01-01T00:00:00.000000Z"
    again = api_client.post(PUSH, json={"notes": [{"id": "n-old", "updatedAt": "2025-01-01T00:00:00Z"}]})
    assert again.json()["stats"]["notes"]["updated"] == 1
