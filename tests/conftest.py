"""Pytest fixtures for Empty Jar tests."""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

import pytest

from emptyjar.backends.cloud import CloudBackend
from emptyjar.backends.local import LocalBackend
from emptyjar.database.repository import LocalRepository
from emptyjar.errors import DuplicateKeyError, TransientNetworkError
from emptyjar.services.connectivity import Connectivity
from emptyjar.services.pending_queue import PendingChangeQueue

# Monday of ISO week 2025-05
MONDAY_2025_05 = datetime(2025, 1, 27, 10, 0)

USER_ID = "user-1"


class FixedClock:
    """Clock returning a settable local time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeCloudClient:
    """In-memory stand-in for CloudClient with a unique (user_id, week_key) index."""

    def __init__(self) -> None:
        self.notes: dict[tuple[str, str], dict[str, Any]] = {}
        self.settings: dict[str, dict[str, Any]] = {}
        self.offline = False
        self.fail_with: Optional[Exception] = None
        self.writes: list[tuple[str, str]] = []
        self._next_id = 1
        self.access_token = ""

    def _check(self) -> None:
        if self.offline:
            raise TransientNetworkError("Cannot reach the cloud store")
        if self.fail_with is not None:
            raise self.fail_with

    def fetch_notes(self, user_id: str) -> list[dict[str, Any]]:
        self._check()
        rows = [dict(r) for (uid, _), r in self.notes.items() if uid == user_id]
        return sorted(rows, key=lambda r: r["week_key"])

    def note_exists(self, user_id: str, week_key: str) -> bool:
        self._check()
        return (user_id, week_key) in self.notes

    def insert_note(self, row: dict[str, Any]) -> dict[str, Any]:
        self._check()
        key = (row["user_id"], row["week_key"])
        if key in self.notes:
            raise DuplicateKeyError("duplicate key value", status_code=409, code="23505")
        stored = dict(row)
        if not stored.get("id"):
            stored["id"] = f"cloud-{self._next_id}"
            self._next_id += 1
        self.notes[key] = stored
        self.writes.append(("insert", row["week_key"]))
        return dict(stored)

    def update_note(self, user_id: str, week_key: str, changes: dict[str, Any]) -> dict[str, Any]:
        self._check()
        self.writes.append(("update", week_key))
        row = self.notes.get((user_id, week_key))
        if row is None:
            return {}
        row.update(changes)
        return dict(row)

    def delete_note(self, user_id: str, week_key: str) -> None:
        self._check()
        self.writes.append(("delete", week_key))
        self.notes.pop((user_id, week_key), None)

    def fetch_settings(self, user_id: str) -> Optional[dict[str, Any]]:
        self._check()
        row = self.settings.get(user_id)
        return dict(row) if row else None

    def upsert_settings(self, row: dict[str, Any]) -> dict[str, Any]:
        self._check()
        self.writes.append(("settings", row["user_id"]))
        merged = {**self.settings.get(row["user_id"], {}), **row}
        self.settings[row["user_id"]] = merged
        return dict(merged)


@pytest.fixture
def temp_db_path():
    """Provide a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def repository(temp_db_path):
    """Provide a local repository with a temporary database."""
    return LocalRepository(f"sqlite:///{temp_db_path}")


@pytest.fixture
def clock():
    """Clock fixed on Monday of week 2025-05."""
    return FixedClock(MONDAY_2025_05)


@pytest.fixture
def connectivity():
    return Connectivity(online=True)


@pytest.fixture
def fake_cloud():
    return FakeCloudClient()


@pytest.fixture
def local_backend(repository):
    return LocalBackend(repository)


@pytest.fixture
def cloud_backend(fake_cloud):
    return CloudBackend(fake_cloud, USER_ID)


@pytest.fixture
def queue(repository):
    return PendingChangeQueue(repository, USER_ID, max_attempts=3)


def _note_data(week_key: str = "2025-05", **overrides: Any) -> dict[str, Any]:
    data = {
        "week_key": week_key,
        "body": "Made hot chocolate and watched the snow.",
        "mood": 4,
        "moment_type": "small-win",
        "tags": ["winter"],
    }
    data.update(overrides)
    return data


@pytest.fixture
def note_data():
    """Factory for the input of NoteStore.add."""
    return _note_data
