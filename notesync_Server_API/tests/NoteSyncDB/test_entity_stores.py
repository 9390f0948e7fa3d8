# test_entity_stores.py
#
#
# Imports
from datetime import datetime, timezone
#
# Third-Party Imports
import pytest
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import ConflictError, InputError
from notesync_Server_API.app.core.DB_Management.Entity_Models import (
    Conversation, Message, MessageRole, Note, Folder, format_timestamp, parse_timestamp
)
from notesync_Server_API.app.core.DB_Management.Entity_Stores import (
    ConversationStore, MessageStore, NoteStore, FolderStore
)
#
#######################################################################################################################
#
# Functions:

T0 = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 1, 1, 2, 0, tzinfo=timezone.utc)


def make_note(note_id, owner="user-a", folder_id=None, updated_at=T0, title="t"):
    return Note(id=note_id, owner_user_id=owner, title=title, content="c", folder_id=folder_id,
                created_at=T0, updated_at=updated_at)


def make_folder(folder_id, owner="user-a", parent_id=None):
    return Folder(id=folder_id, owner_user_id=owner, name=folder_id, parent_id=parent_id,
                  created_at=T0, updated_at=T0)


@pytest.fixture
def notes(db_instance):
    return NoteStore(db_instance)


@pytest.fixture
def folders(db_instance):
    return FolderStore(db_instance)


class TestTimestampHelpers:
    def test_format_is_fixed_width_utc(self):
        assert format_timestamp(T0) == "2024-01-01T00:00:00.000000Z"

    def test_parse_accepts_z_offset_and_naive(self):
        assert parse_timestamp("2024-01-01T00:00:00Z") == T0
        assert parse_timestamp("2024-01-01T02:00:00+02:00") == T0
        assert parse_timestamp("2024-01-01T00:00:00") == T0

    def test_parse_rejects_garbage(self):
        assert parse_timestamp("not-a-date") is None
        assert parse_timestamp("") is None

    def test_microseconds_survive_round_trip(self):
        precise = datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(precise)) == precise

    def test_years_below_1000_are_zero_padded(self):
        early = datetime(500, 1, 1, tzinfo=timezone.utc)
        assert format_timestamp(early) == "0500-01-01T00:00:00.000000Z"
        assert format_timestamp(early) < format_timestamp(T0)
        assert parse_timestamp(format_timestamp(early)) == early


class TestBasicCrud:
    def test_insert_and_get(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            fetched = notes.get(conn, "user-a", "n1")
        assert fetched == make_note("n1")

    def test_get_is_owner_scoped(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            assert notes.get(conn, "user-b", "n1") is None
            assert notes.find_by_id(conn, "n1").owner_user_id == "user-a"

    def test_insert_duplicate_id_conflicts(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
        with pytest.raises(ConflictError):
            with db_instance.transaction() as conn:
                notes.insert(conn, make_note("n1", title="again"))

    def test_insert_over_foreign_id_does_not_reveal_it(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
        with pytest.raises(InputError) as exc_info:
            with db_instance.transaction() as conn:
                notes.insert(conn, make_note("n1", owner="user-b"))
        assert not isinstance(exc_info.value, ConflictError)
        with db_instance.transaction() as conn:
            assert notes.find_by_id(conn, "n1").owner_user_id == "user-a"

    def test_update_patch_bumps_updated_at(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            updated = notes.update(conn, "user-a", "n1", {"title": "new"}, T1)
        assert updated.title == "new"
        assert updated.content == "c"
        assert updated.updated_at == T1

    def test_update_rejects_immutable_fields(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            with pytest.raises(InputError):
                notes.update(conn, "user-a", "n1", {"owner_user_id": "user-b"}, T1)
            with pytest.raises(InputError):
                notes.update(conn, "user-a", "n1", {"deleted_at": None}, T1)

    def test_update_does_not_touch_soft_deleted(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            notes.soft_delete_many(conn, "user-a", ["n1"], T1)
            assert notes.update(conn, "user-a", "n1", {"title": "x"}, T2) is None
            assert notes.get(conn, "user-a", "n1", include_deleted=True).deleted_at == T1

    def test_replace_overwrites_everything_but_id(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            replacement = make_note("n1", title="replaced", updated_at=T2)
            replacement.deleted_at = T2
            assert notes.replace(conn, replacement) is True
            assert notes.get(conn, "user-a", "n1", include_deleted=True) == replacement


class TestDeleteAndRestore:
    def test_soft_delete_keeps_earlier_deletion_instant(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            notes.insert(conn, make_note("n2"))
            assert notes.soft_delete_many(conn, "user-a", ["n1"], T1) == 1
            assert notes.soft_delete_many(conn, "user-a", ["n1", "n2"], T2) == 1
            assert notes.get(conn, "user-a", "n1", include_deleted=True).deleted_at == T1
            assert notes.get(conn, "user-a", "n2", include_deleted=True).deleted_at == T2
            assert notes.get(conn, "user-a", "n1") is None

    def test_hard_delete_removes_rows(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            assert notes.hard_delete_many(conn, "user-a", ["n1"]) == 1
            assert notes.find_by_id(conn, "n1") is None

    def test_delete_and_restore_are_owner_scoped(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1"))
            assert notes.soft_delete_many(conn, "user-b", ["n1"], T1) == 0
            assert notes.hard_delete_many(conn, "user-b", ["n1"]) == 0
            notes.soft_delete_many(conn, "user-a", ["n1"], T1)
            assert notes.restore_many(conn, "user-b", ["n1"], T2) == 0
            assert notes.restore_many(conn, "user-a", ["n1"], T2) == 1
            restored = notes.get(conn, "user-a", "n1")
        assert restored.deleted_at is None
        assert restored.updated_at == T2

    def test_by_folder_ids_variants(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("n1", folder_id="f1"))
            notes.insert(conn, make_note("n2", folder_id="f2"))
            notes.insert(conn, make_note("n3"))
            assert notes.soft_delete_by_folder_ids(conn, "user-a", ["f1", "f2"], T1) == 2
            assert notes.get(conn, "user-a", "n3") is not None
            assert notes.restore_by_folder_ids(conn, "user-a", ["f1"], T2) == 1
            assert notes.hard_delete_by_folder_ids(conn, "user-a", ["f2"]) == 1
            assert notes.find_by_id(conn, "n2") is None

    def test_delete_all_in_folders_spares_root_notes(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("in-folder", folder_id="f1"))
            notes.insert(conn, make_note("at-root"))
            notes.insert(conn, make_note("other-owner", owner="user-b", folder_id="f9"))
            assert notes.delete_all_in_folders(conn, "user-a", T1, hard=True) == 1
            assert notes.find_by_id(conn, "at-root") is not None
            assert notes.find_by_id(conn, "other-owner") is not None

    def test_large_id_lists_are_chunked(self, db_instance, notes):
        ids = [f"n{i}" for i in range(1200)]
        with db_instance.transaction() as conn:
            for note_id in ids:
                notes.insert(conn, make_note(note_id))
            assert notes.soft_delete_many(conn, "user-a", ids, T1) == 1200


class TestModifiedSince:
    def test_inclusive_bound_and_soft_deleted_included(self, db_instance, notes):
        with db_instance.transaction() as conn:
            notes.insert(conn, make_note("old", updated_at=T0))
            notes.insert(conn, make_note("edge", updated_at=T1))
            notes.insert(conn, make_note("new", updated_at=T2))
            notes.soft_delete_many(conn, "user-a", ["new"], T2)
            notes.insert(conn, make_note("foreign", owner="user-b", updated_at=T2))
            changed = notes.find_modified_since(conn, "user-a", T1)
        assert [n.id for n in changed] == ["edge", "new"]
        assert changed[1].deleted_at == T2


class TestOtherKinds:
    def test_message_role_and_conversation_variants(self, db_instance):
        conversations = ConversationStore(db_instance)
        messages = MessageStore(db_instance)
        with db_instance.transaction() as conn:
            conversations.insert(conn, Conversation(id="c1", owner_user_id="user-a", title="chat",
                                                    created_at=T0, updated_at=T0))
            messages.insert(conn, Message(id="m1", owner_user_id="user-a", conversation_id="c1",
                                          role=MessageRole.USER, content="hi", created_at=T0, updated_at=T0))
            messages.insert(conn, Message(id="m2", owner_user_id="user-a", conversation_id="c1",
                                          role="assistant", content="hello", created_at=T1, updated_at=T1))
            listed = messages.list_for_conversation(conn, "user-a", "c1")
            assert [m.role for m in listed] == [MessageRole.USER, MessageRole.ASSISTANT]
            assert messages.soft_delete_by_conversation_ids(conn, "user-a", ["c1"], T2) == 2
            assert messages.list_for_conversation(conn, "user-a", "c1") == []
            assert messages.restore_by_conversation_ids(conn, "user-a", ["c1"], T2) == 2

    def test_message_role_patch_is_validated(self, db_instance):
        messages = MessageStore(db_instance)
        with db_instance.transaction() as conn:
            messages.insert(conn, Message(id="m1", owner_user_id="user-a", conversation_id="c1",
                                          role="user", content="hi", created_at=T0, updated_at=T0))
            with pytest.raises(InputError):
                messages.update(conn, "user-a", "m1", {"role": "robot"}, T1)

    def test_folder_children_and_parent_links(self, db_instance, folders):
        with db_instance.transaction() as conn:
            folders.insert(conn, make_folder("root"))
            folders.insert(conn, make_folder("child", parent_id="root"))
            folders.insert(conn, make_folder("theirs", owner="user-b", parent_id="root"))
            folders.soft_delete_many(conn, "user-a", ["child"], T1)
            assert folders.list_children(conn, "user-a", "root") == []
            assert [f.id for f in folders.list_children(conn, "user-a", "root", include_deleted=True)] == ["child"]
            assert sorted(folders.parent_links(conn, "user-a")) == [("child", "root"), ("root", None)]
