"""Unit tests for LocalRepository and LocalBackend."""

from datetime import datetime, timezone

import pytest

from emptyjar.errors import DuplicateKeyError, PermanentBackendError
from emptyjar.models.app_settings import AppSettings, ThemeMode
from emptyjar.models.note import MomentType, Note
from emptyjar.models.pending_change import ChangeTable, ChangeType, PendingChange


def make_note(week_key: str = "2025-05", **kwargs) -> Note:
    return Note(week_key=week_key, body=kwargs.pop("body", "A good week"), **kwargs)


class TestNoteOperations:
    """Tests for note persistence."""

    def test_insert_assigns_id(self, repository):
        """Test that a note without id gets a uuid."""
        note = repository.insert_note(make_note())
        assert note.id
        assert not note.is_local

    def test_insert_and_load(self, repository):
        """Test that notes load back ordered by week key with all fields."""
        created = datetime(2025, 1, 27, 15, 30, tzinfo=timezone.utc)
        repository.insert_note(make_note("2025-05", mood=5, tags=["a", "b"], created_at=created))
        repository.insert_note(
            make_note("2025-02", title="Snow", moment_type=MomentType.PEOPLE, is_backfill=True)
        )

        notes = repository.load_notes()

        assert [n.week_key for n in notes] == ["2025-02", "2025-05"]
        assert notes[0].title == "Snow"
        assert notes[0].moment_type == MomentType.PEOPLE
        assert notes[0].is_backfill
        assert notes[1].tags == ["a", "b"]
        assert notes[1].mood == 5
        assert notes[1].created_at == created

    def test_second_note_for_week_is_rejected(self, repository):
        """Test the unique week key constraint."""
        repository.insert_note(make_note())
        with pytest.raises(DuplicateKeyError):
            repository.insert_note(make_note(body="Another"))
        assert len(repository.load_notes()) == 1

    def test_get_note_by_week(self, repository):
        """Test lookup by week key."""
        repository.insert_note(make_note())
        assert repository.get_note_by_week("2025-05").body == "A good week"
        assert repository.get_note_by_week("2025-06") is None

    def test_update_note(self, repository):
        """Test overwriting editable fields."""
        note = repository.insert_note(make_note())
        note.body = "Better week"
        note.mood = 5
        repository.update_note(note)

        assert repository.get_note_by_week("2025-05").body == "Better week"
        assert repository.get_note_by_week("2025-05").mood == 5

    def test_update_missing_note(self, repository):
        """Test that updating an unknown id is a permanent failure."""
        with pytest.raises(PermanentBackendError) as exc_info:
            repository.update_note(make_note(id="missing"))
        assert exc_info.value.code == "not_found"

    def test_delete_note(self, repository):
        """Test deleting by id."""
        note = repository.insert_note(make_note())
        assert repository.delete_note(note.id) is True
        assert repository.delete_note(note.id) is False
        assert repository.load_notes() == []


class TestSettingsOperations:
    """Tests for settings persistence."""

    def test_missing_settings(self, repository):
        """Test that nothing is stored initially."""
        assert repository.load_settings() is None

    def test_save_and_load(self, repository):
        """Test settings round trip through storage."""
        repository.save_settings(AppSettings(reminder_day=3, theme_mode=ThemeMode.DARK))
        repository.save_settings(AppSettings(reminder_day=4, hide_notes=True))

        loaded = repository.load_settings()
        assert loaded.reminder_day == 4
        assert loaded.hide_notes
        assert loaded.theme_mode == ThemeMode.LIGHT


class TestPendingOperations:
    """Tests for the persisted offline queue."""

    def test_fifo_order(self, repository):
        """Test entries come back in append order."""
        for i in range(3):
            repository.append_pending(
                PendingChange(ChangeType.CREATE, ChangeTable.NOTES, {"n": i}, timestamp=1000 - i)
            )

        entries = repository.list_pending()

        assert [e.data["n"] for e in entries] == [0, 1, 2]
        assert entries[0].change_type == ChangeType.CREATE
        assert entries[0].table == ChangeTable.NOTES
        assert repository.count_pending() == 3

    def test_remove_and_attempts(self, repository):
        """Test removing entries and recording attempts."""
        first = repository.append_pending(PendingChange(ChangeType.UPDATE, ChangeTable.SETTINGS, {}))
        second = repository.append_pending(PendingChange(ChangeType.DELETE, ChangeTable.NOTES, {}))

        repository.set_pending_attempts(second.id, 2)
        repository.remove_pending(first.id)

        entries = repository.list_pending()
        assert [e.id for e in entries] == [second.id]
        assert entries[0].attempts == 2

    def test_pending_id_format(self):
        """Test generated ids look like pending-<ms>-<suffix>."""
        change = PendingChange(ChangeType.CREATE, ChangeTable.NOTES, {}, timestamp=1736424000000)
        prefix, ts, suffix = change.id.split("-")
        assert prefix == "pending"
        assert ts == "1736424000000"
        assert len(suffix) == 9

    def test_filter_by_account(self, repository):
        """Test that listing and counting can be limited to one account."""
        repository.append_pending(PendingChange(ChangeType.CREATE, ChangeTable.NOTES, {"n": 1}, user_id="user-1"))
        repository.append_pending(PendingChange(ChangeType.CREATE, ChangeTable.NOTES, {"n": 2}, user_id="user-2"))

        assert [e.data["n"] for e in repository.list_pending("user-2")] == [2]
        assert repository.list_pending("user-2")[0].user_id == "user-2"
        assert repository.count_pending("user-1") == 1
        assert repository.count_pending() == 2

        repository.clear_pending("user-1")

        assert [e.user_id for e in repository.list_pending()] == ["user-2"]


class TestFlags:
    """Tests for the guest migration flag."""

    def test_flag_survives_guest_data_purge(self, repository):
        """Test that clearing guest data keeps the flag and the queue."""
        repository.insert_note(make_note())
        repository.save_settings(AppSettings())
        repository.append_pending(PendingChange(ChangeType.CREATE, ChangeTable.NOTES, {}))
        repository.mark_guest_migrated()

        repository.clear_guest_data()

        assert repository.load_notes() == []
        assert repository.load_settings() is None
        assert repository.count_pending() == 1
        assert repository.is_guest_migrated()

    def test_flag_unset_initially(self, repository):
        """Test a fresh profile is not migrated."""
        assert not repository.is_guest_migrated()
        assert repository.get_flag("other") is None


class TestLocalBackend:
    """Tests for the guest backend wrapper."""

    def test_not_cloud(self, local_backend):
        """Test backend kind."""
        assert not local_backend.is_cloud

    def test_delete_missing_is_not_an_error(self, local_backend):
        """Test deleting an absent note silently succeeds."""
        local_backend.delete_note(make_note(id="missing"))

    def test_round_trip(self, local_backend):
        """Test insert then load through the backend."""
        stored = local_backend.insert_note(make_note())
        assert [n.id for n in local_backend.load_notes()] == [stored.id]
