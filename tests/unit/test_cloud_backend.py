"""Unit tests for CloudBackend."""

import pytest

from emptyjar.errors import DuplicateKeyError
from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note


class TestCloudBackend:
    """Tests for note and settings mapping onto cloud rows."""

    def test_is_cloud(self, cloud_backend):
        """Test backend kind."""
        assert cloud_backend.is_cloud

    def test_insert_strips_local_id(self, cloud_backend, fake_cloud):
        """Test that a device-assigned id never reaches the server."""
        stored = cloud_backend.insert_note(Note(week_key="2025-05", body="Hi", id="local-abc"))

        row = fake_cloud.notes[("user-1", "2025-05")]
        assert row["id"] == "cloud-1"
        assert stored.id == "cloud-1"
        assert not stored.is_local

    def test_insert_duplicate_week(self, cloud_backend):
        """Test that the server's unique index surfaces as DuplicateKeyError."""
        cloud_backend.insert_note(Note(week_key="2025-05", body="Hi"))
        with pytest.raises(DuplicateKeyError):
            cloud_backend.insert_note(Note(week_key="2025-05", body="Again"))

    def test_update_by_week_key(self, cloud_backend, fake_cloud):
        """Test that updates address the row by week, whatever the local id."""
        cloud_backend.insert_note(Note(week_key="2025-05", body="Hi"))

        updated = cloud_backend.update_note(Note(week_key="2025-05", body="Edited", mood=5, id="local-x"))

        assert fake_cloud.notes[("user-1", "2025-05")]["body"] == "Edited"
        assert updated.id == "cloud-1"
        assert updated.mood == 5

    def test_delete_by_week_key(self, cloud_backend, fake_cloud):
        """Test deleting by week."""
        cloud_backend.insert_note(Note(week_key="2025-05", body="Hi"))
        cloud_backend.delete_note(Note(week_key="2025-05", body="Hi", id="local-x"))
        assert fake_cloud.notes == {}

    def test_load_notes(self, cloud_backend):
        """Test rows map back to notes."""
        cloud_backend.insert_note(Note(week_key="2025-06", body="B", tags=["x"]))
        cloud_backend.insert_note(Note(week_key="2025-04", body="A"))

        notes = cloud_backend.load_notes()

        assert [n.week_key for n in notes] == ["2025-04", "2025-06"]
        assert notes[1].tags == ["x"]

    def test_settings(self, cloud_backend, fake_cloud):
        """Test settings are stored per account."""
        assert cloud_backend.load_settings() is None

        cloud_backend.save_settings(AppSettings(reminder_day=2, timezone="Europe/Berlin"))

        assert fake_cloud.settings["user-1"]["timezone"] == "Europe/Berlin"
        assert cloud_backend.load_settings().reminder_day == 2

    def test_note_exists(self, cloud_backend):
        """Test the per-week existence check."""
        cloud_backend.insert_note(Note(week_key="2025-05", body="Hi"))
        assert cloud_backend.note_exists("2025-05")
        assert not cloud_backend.note_exists("2025-06")
