"""In-memory note ledger backed by the session's backend."""

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from emptyjar.backends.base import Backend
from emptyjar.errors import (
    DuplicateKeyError,
    DuplicateWeekError,
    EditWindowError,
    NoteNotFoundError,
    NoteValidationError,
    PermanentBackendError,
    TransientNetworkError,
)
from emptyjar.models.note import LOCAL_ID_PREFIX, MomentType, Note
from emptyjar.models.pending_change import ChangeTable, ChangeType
from emptyjar.models.results import MutationResult
from emptyjar.models.week import WeekInfo
from emptyjar.services.connectivity import Connectivity
from emptyjar.services.pending_queue import PendingChangeQueue
from emptyjar.weeks import parse_week_key, validate_week_key, week_key_of, weeks_in_year

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

EDITABLE_FIELDS = ("title", "body", "mood", "moment_type", "tags")

# Notes needed before the year replay unlocks
REPLAY_UNLOCK_COUNT = 10


def validate_note_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Check and normalize the user-editable fields of a note.

    Raises:
        NoteValidationError: If body is blank, mood is outside 1-5, or the
            moment type is unknown
    """
    body = data.get("body")
    if not isinstance(body, str) or not body.strip():
        raise NoteValidationError("Note body is required")

    mood = data.get("mood")
    if isinstance(mood, bool) or not isinstance(mood, int) or not 1 <= mood <= 5:
        raise NoteValidationError(f"Mood must be an integer from 1 to 5, got {mood!r}")

    try:
        moment_type = MomentType(data.get("moment_type") or MomentType.OTHER)
    except ValueError as e:
        raise NoteValidationError(f"Unknown moment type: {data.get('moment_type')!r}") from e

    title = data.get("title")
    if title is not None and not isinstance(title, str):
        raise NoteValidationError("Title must be a string")
    title = title.strip() if title else None

    raw_tags = data.get("tags") or []
    if isinstance(raw_tags, str):
        raise NoteValidationError("Tags must be a list of strings")
    tags = [str(t).strip() for t in raw_tags if str(t).strip()]

    return {
        "title": title or None,
        "body": body.strip(),
        "mood": mood,
        "moment_type": moment_type,
        "tags": tags,
    }


class NoteStore:
    """Owns the in-memory note collection of one session.

    Every mutation is validated, then written through the backend. When the
    cloud cannot be reached the mutation is applied in memory anyway and
    recorded in the pending queue, so callers always read their latest
    write. Validation and invariant failures raise; backend rejections are
    returned as REJECTED results; in both cases nothing changes.

    Args:
        backend: Storage chosen for this session
        queue: Offline queue, required for cloud sessions
        connectivity: Shared online/offline state
        clock: Returns the user's current local time
    """

    def __init__(
        self,
        backend: Backend,
        queue: Optional[PendingChangeQueue] = None,
        connectivity: Optional[Connectivity] = None,
        clock: Clock = datetime.now,
    ):
        self.backend = backend
        self.queue = queue
        self.connectivity = connectivity or Connectivity()
        self.clock = clock
        self._notes: list[Note] = []

    # ==================== Loading ====================

    def load(self) -> list[Note]:
        """Replace the in-memory collection with the backend's notes.

        Changes still waiting in the queue are applied on top, so writes made
        offline in an earlier session stay visible. If the backend cannot be
        reached, the collection holds the queued notes alone and the
        TransientNetworkError propagates.
        """
        try:
            loaded = self.backend.load_notes()
        except TransientNetworkError:
            self._notes = self._with_pending([])
            raise
        self._notes = self._with_pending(loaded)
        logger.debug("Loaded %d note(s) from %s backend", len(self._notes), self.backend.kind.value)
        return self.notes

    reload = load

    # ==================== Queries ====================

    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    @property
    def notes_count(self) -> int:
        return len(self._notes)

    @property
    def can_replay(self) -> bool:
        return len(self._notes) >= REPLAY_UNLOCK_COUNT

    @property
    def current_week_key(self) -> str:
        return week_key_of(self.clock())

    def get(self, note_id: str) -> Optional[Note]:
        return next((n for n in self._notes if n.id == note_id), None)

    def get_for_week(self, week_key: str) -> Optional[Note]:
        return next((n for n in self._notes if n.week_key == week_key), None)

    def has_for_week(self, week_key: str) -> bool:
        return self.get_for_week(week_key) is not None

    def can_edit(self, week_key: str) -> bool:
        """Notes are editable only while their week is the current one."""
        return week_key == self.current_week_key

    def weeks(self, year: Optional[int] = None) -> list[WeekInfo]:
        """Timeline for ``year`` (default: the current ISO year)."""
        if year is None:
            year = parse_week_key(self.current_week_key).year
        return weeks_in_year(year, self._notes, today=self.clock().date())

    def sorted_notes(self) -> list[Note]:
        """Read-only, week-ordered notes for export."""
        return sorted((replace(n) for n in self._notes), key=lambda n: n.week_key)

    # ==================== Mutations ====================

    def add(self, data: Mapping[str, Any]) -> MutationResult:
        """Create the note for a week.

        Args:
            data: ``week_key``, ``body``, ``mood`` and optionally ``title``,
                ``moment_type``, ``tags``

        Raises:
            WeekKeyFormatError: If the week key is malformed
            NoteValidationError: If a field is invalid
            DuplicateWeekError: If the week already has a note
        """
        week_key = validate_week_key(data.get("week_key", ""))
        fields = validate_note_fields(data)
        if self.has_for_week(week_key):
            raise DuplicateWeekError(week_key)

        now = self._now_utc()
        note = Note(
            week_key=week_key,
            created_at=now,
            updated_at=now,
            is_backfill=week_key < self.current_week_key,
            **fields,
        )

        try:
            result = self._write(ChangeType.CREATE, note, lambda: self.backend.insert_note(replace(note)))
        except DuplicateKeyError as e:
            raise DuplicateWeekError(week_key) from e

        if result.ok:
            self._notes.append(result.note)
            self._notes.sort(key=lambda n: n.week_key)
        return result

    def update(self, note_id: str, changes: Mapping[str, Any]) -> MutationResult:
        """Edit a note of the current week.

        Raises:
            NoteNotFoundError: If no note has this id
            EditWindowError: If the note's week is not the current week
            NoteValidationError: If a field is invalid or not editable
        """
        note = self.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        current = self.current_week_key
        if note.week_key != current:
            raise EditWindowError(note.week_key, current)

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise NoteValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        merged = {name: getattr(note, name) for name in EDITABLE_FIELDS}
        merged.update(changes)
        updated = replace(note, **validate_note_fields(merged), updated_at=self._now_utc())

        result = self._write(ChangeType.UPDATE, updated, lambda: self.backend.update_note(replace(updated)))
        if result.ok:
            self._replace_in_memory(note_id, result.note)
        return result

    def delete(self, note_id: str) -> MutationResult:
        """Delete a note of any week.

        Raises:
            NoteNotFoundError: If no note has this id
        """
        note = self.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)

        def write() -> Note:
            self.backend.delete_note(note)
            return note

        result = self._write(ChangeType.DELETE, note, write)
        if result.ok:
            self._notes = [n for n in self._notes if n.id != note_id]
        return result

    # ==================== Helper Methods ====================

    def _with_pending(self, notes: list[Note]) -> list[Note]:
        """Apply queued note changes in FIFO order, addressing rows by week key."""
        by_week = {note.week_key: note for note in notes}
        if self.queue is not None:
            for change in self.queue.entries_for(ChangeTable.NOTES):
                note = Note.from_dict(change.data)
                existing = by_week.get(note.week_key)
                if change.change_type == ChangeType.CREATE:
                    # A create that meets an existing row is dropped on replay
                    by_week.setdefault(note.week_key, note)
                elif change.change_type == ChangeType.UPDATE:
                    if existing is not None:
                        by_week[note.week_key] = replace(note, id=existing.id)
                else:
                    by_week.pop(note.week_key, None)
        return sorted(by_week.values(), key=lambda n: n.week_key)

    def _now_utc(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.astimezone()
        return now.astimezone(timezone.utc)

    def _replace_in_memory(self, note_id: str, note: Note) -> None:
        self._notes = [note if n.id == note_id else n for n in self._notes]

    def _write(self, change_type: ChangeType, note: Note, write: Callable[[], Note]) -> MutationResult:
        """Persist through the backend, or queue if the cloud is unreachable.

        DuplicateKeyError propagates to the caller.
        """
        if self.backend.is_cloud and not self.connectivity.is_online:
            return self._enqueue(change_type, note)

        try:
            stored = write()
        except TransientNetworkError as e:
            if not self.backend.is_cloud:
                raise
            logger.warning("Cloud unreachable, queueing %s for week %s: %s", change_type.value, note.week_key, e)
            self.connectivity.mark_offline()
            return self._enqueue(change_type, note)
        except PermanentBackendError as e:
            logger.error("Backend rejected %s for week %s: %s", change_type.value, note.week_key, e)
            return MutationResult.rejected(e.message)

        return MutationResult.committed(note=stored)

    def _enqueue(self, change_type: ChangeType, note: Note) -> MutationResult:
        if self.queue is None:
            raise RuntimeError("A pending change queue is required for cloud sessions")
        if change_type == ChangeType.CREATE and not note.id:
            note = replace(note, id=f"{LOCAL_ID_PREFIX}{uuid.uuid4()}")
        self.queue.append(change_type, ChangeTable.NOTES, note.to_dict())
        return MutationResult.queued(note=note)
