# test_notes_api.py
#
#
# Imports
#
# Third-Party Imports
import pytest
#
#######################################################################################################################
#
# Functions:

NOTES = "/api/v1/notes"
FOLDERS = "/api/v1/folders"
AS_B = {"X-Test-Owner": "user-b"}


@pytest.fixture
def client(api_client):
    return api_client


class TestNotesEndpoints:
    def test_create_and_get_camel_case(self, client):
        resp = client.post(f"{NOTES}/", json={"title": "Hello", "content": "World"})
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["title"] == "Hello"
        assert body["ownerUserId"] == "user-a"
        assert body["folderId"] is None
        assert body["deletedAt"] is None
        assert body["updatedAt"].endswith("Z")

        fetched = client.get(f"{NOTES}/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == body

    def test_unknown_and_foreign_notes_are_404(self, client):
        created = client.post(f"{NOTES}/", json={"id": "n1", "title": "mine"}).json()
        assert client.get(f"{NOTES}/missing").status_code == 404
        assert client.get(f"{NOTES}/{created['id']}", headers=AS_B).status_code == 404
        assert client.delete(f"{NOTES}/{created['id']}", headers=AS_B).status_code == 404

    def test_duplicate_id_is_409(self, client):
        assert client.post(f"{NOTES}/", json={"id": "dup"}).status_code == 201
        assert client.post(f"{NOTES}/", json={"id": "dup"}).status_code == 409

    def test_id_taken_by_another_owner_is_400(self, client):
        assert client.post(f"{NOTES}/", json={"id": "taken"}, headers=AS_B).status_code == 201
        resp = client.post(f"{NOTES}/", json={"id": "taken"})
        assert resp.status_code == 400
        assert "taken" not in resp.json()["detail"]
        assert client.post(f"{FOLDERS}/", json={"id": "taken-f", "name": "x"}, headers=AS_B).status_code == 201
        assert client.post(f"{FOLDERS}/", json={"id": "taken-f", "name": "y"}).status_code == 400

    def test_patch_accepts_camel_case(self, client):
        folder = client.post(f"{FOLDERS}/", json={"name": "Inbox"}).json()
        note = client.post(f"{NOTES}/", json={"title": "t"}).json()
        resp = client.patch(f"{NOTES}/{note['id']}", json={"folderId": folder["id"]})
        assert resp.status_code == 200, resp.text
        assert resp.json()["folderId"] == folder["id"]
        listed = client.get(f"{NOTES}/", params={"folderId": folder["id"]}).json()
        assert [n["id"] for n in listed] == [note["id"]]

    def test_delete_restore_cycle(self, client):
        note = client.post(f"{NOTES}/", json={"title": "t"}).json()
        assert client.delete(f"{NOTES}/{note['id']}").status_code == 204
        assert client.get(f"{NOTES}/{note['id']}").status_code == 404
        restored = client.post(f"{NOTES}/{note['id']}/restore")
        assert restored.status_code == 200
        assert restored.json()["deletedAt"] is None

    def test_delete_all_requires_confirmation(self, client):
        client.post(f"{NOTES}/", json={"title": "t"})
        assert client.delete(f"{NOTES}/").status_code == 400
        resp = client.delete(f"{NOTES}/", params={"confirm": True})
        assert resp.status_code == 200
        assert resp.json() == {"deleted": 1}
        assert client.get(f"{NOTES}/").json() == []


class TestFolderEndpoints:
    def _tree(self, client):
        root = client.post(f"{FOLDERS}/", json={"id": "root", "name": "Root"}).json()
        client.post(f"{FOLDERS}/", json={"id": "child", "name": "Child", "parentId": "root"})
        client.post(f"{NOTES}/", json={"id": "n1", "title": "deep", "folderId": "child"})
        return root

    def test_cascade_soft_delete_and_restore(self, client):
        self._tree(client)
        resp = client.delete(f"{FOLDERS}/root")
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"folderIds": ["root", "child"], "foldersAffected": 2, "notesAffected": 1}
        assert client.get(f"{NOTES}/n1").status_code == 404

        resp = client.post(f"{FOLDERS}/root/restore")
        assert resp.status_code == 200
        assert resp.json()["notesAffected"] == 1
        assert client.get(f"{NOTES}/n1").json()["deletedAt"] is None

    def test_permanent_delete(self, client):
        self._tree(client)
        resp = client.delete(f"{FOLDERS}/root", params={"permanent": True})
        assert resp.status_code == 200
        assert client.post(f"{FOLDERS}/root/restore").status_code == 404
        assert client.post(f"{NOTES}/n1/restore").status_code == 404

    def test_delete_of_foreign_folder_is_404(self, client):
        self._tree(client)
        assert client.delete(f"{FOLDERS}/root", headers=AS_B).status_code == 404
        assert client.get(f"{FOLDERS}/root").json()["deletedAt"] is None

    def test_move_into_own_child_is_400(self, client):
        self._tree(client)
        resp = client.patch(f"{FOLDERS}/root", json={"parentId": "child"})
        assert resp.status_code == 400

    def test_blank_folder_name_is_422(self, client):
        assert client.post(f"{FOLDERS}/", json={"name": ""}).status_code == 422
