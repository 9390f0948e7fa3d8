# test_notes_library.py
#
#
# Imports
#
# Third-Party Imports
import pytest
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import ConflictError, InputError, NotFoundError
from notesync_Server_API.app.core.Notes.Notes_Library import NotesService, DEFAULT_NOTE_TITLE
#
#######################################################################################################################
#
# Functions:


@pytest.fixture
def service(db_instance, clock):
    return NotesService(db_instance, clock=clock)


class TestNotes:
    def test_create_with_defaults(self, service, owner, clock):
        note = service.create_note(owner)
        assert note.title == DEFAULT_NOTE_TITLE
        assert note.content == ""
        assert note.folder_id is None
        assert note.created_at == note.updated_at == clock()
        assert service.get_note(owner, note.id) == note

    def test_blank_title_becomes_default(self, service, owner):
        note = service.create_note(owner, "   ", "x")
        assert note.title == DEFAULT_NOTE_TITLE

    def test_client_supplied_id_must_be_unique(self, service, owner):
        service.create_note(owner, "a", note_id="n1")
        with pytest.raises(ConflictError):
            service.create_note(owner, "b", note_id="n1")

    def test_id_held_by_another_owner_is_rejected_without_conflict(self, service, owner, other_owner):
        service.create_note(other_owner, "theirs", note_id="n1")
        service.create_folder(other_owner, "theirs", folder_id="f1")
        with pytest.raises(InputError):
            service.create_note(owner, "mine", note_id="n1")
        with pytest.raises(InputError):
            service.create_folder(owner, "mine", folder_id="f1")
        assert service.get_note(other_owner, "n1").title == "theirs"

    def test_note_in_foreign_or_deleted_folder_is_rejected(self, service, owner, other_owner):
        service.create_folder(other_owner, "theirs", folder_id="theirs")
        with pytest.raises(NotFoundError):
            service.create_note(owner, "x", folder_id="theirs")
        service.create_folder(owner, "mine", folder_id="mine")
        service.delete_folder(owner, "mine")
        with pytest.raises(NotFoundError):
            service.create_note(owner, "x", folder_id="mine")

    def test_other_owner_cannot_see_note(self, service, owner, other_owner):
        service.create_note(owner, "private", note_id="n1")
        with pytest.raises(NotFoundError):
            service.get_note(other_owner, "n1")
        assert service.list_notes(other_owner) == []

    def test_update_and_move(self, service, owner, clock):
        service.create_folder(owner, "f", folder_id="f")
        service.create_note(owner, "a", note_id="n1")
        clock.advance(minutes=5)
        moved = service.update_note(owner, "n1", {"title": "b", "folder_id": "f"})
        assert (moved.title, moved.folder_id) == ("b", "f")
        assert moved.updated_at == clock()
        back = service.update_note(owner, "n1", {"folder_id": None})
        assert back.folder_id is None

    def test_update_missing_note(self, service, owner):
        with pytest.raises(NotFoundError):
            service.update_note(owner, "ghost", {"title": "x"})

    def test_list_filters(self, service, owner):
        service.create_folder(owner, "f", folder_id="f")
        service.create_note(owner, "in folder", folder_id="f", note_id="in")
        service.create_note(owner, "at root", note_id="root")
        assert {n.id for n in service.list_notes(owner)} == {"in", "root"}
        assert [n.id for n in service.list_notes(owner, folder_id="f")] == ["in"]
        assert [n.id for n in service.list_notes(owner, root_only=True)] == ["root"]

    def test_soft_delete_restore_and_hard_delete(self, service, owner, clock):
        service.create_note(owner, "a", note_id="n1")
        clock.advance(minutes=1)
        service.delete_note(owner, "n1")
        with pytest.raises(NotFoundError):
            service.get_note(owner, "n1")
        assert service.get_note(owner, "n1", include_deleted=True).deleted_at == clock()

        clock.advance(minutes=1)
        restored = service.restore_note(owner, "n1")
        assert restored.deleted_at is None
        assert restored.updated_at == clock()

        service.delete_note(owner, "n1", permanent=True)
        with pytest.raises(NotFoundError):
            service.get_note(owner, "n1", include_deleted=True)
        with pytest.raises(NotFoundError):
            service.delete_note(owner, "n1")


class TestFolders:
    def test_empty_name_rejected(self, service, owner):
        with pytest.raises(InputError):
            service.create_folder(owner, "  ")

    def test_list_children_and_roots(self, service, owner):
        service.create_folder(owner, "Top", folder_id="top")
        service.create_folder(owner, "Inner", parent_id="top", folder_id="inner")
        assert [f.id for f in service.list_folders(owner, root_only=True)] == ["top"]
        assert [f.id for f in service.list_folders(owner, parent_id="top")] == ["inner"]
        assert {f.id for f in service.list_folders(owner)} == {"top", "inner"}

    def test_move_into_descendant_is_rejected(self, service, owner):
        service.create_folder(owner, "a", folder_id="a")
        service.create_folder(owner, "b", parent_id="a", folder_id="b")
        with pytest.raises(InputError):
            service.update_folder(owner, "a", {"parent_id": "b"})
        with pytest.raises(InputError):
            service.update_folder(owner, "a", {"parent_id": "a"})
        assert service.get_folder(owner, "a").parent_id is None

    def test_rename_and_move_to_root(self, service, owner):
        service.create_folder(owner, "a", folder_id="a")
        service.create_folder(owner, "b", parent_id="a", folder_id="b")
        updated = service.update_folder(owner, "b", {"name": " renamed ", "parent_id": None})
        assert (updated.name, updated.parent_id) == ("renamed", None)

    def test_parent_must_be_owned(self, service, owner, other_owner):
        service.create_folder(other_owner, "theirs", folder_id="theirs")
        with pytest.raises(NotFoundError):
            service.create_folder(owner, "mine", parent_id="theirs")
