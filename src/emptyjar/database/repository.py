"""Repository for the local device database."""

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from emptyjar.database.schema import (
    FlagRecord,
    NoteRecord,
    PendingChangeRecord,
    SettingsRecord,
    init_database,
)
from emptyjar.errors import DuplicateKeyError, PermanentBackendError
from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note, parse_timestamp
from emptyjar.models.pending_change import PendingChange

GUEST_MIGRATED_FLAG = "guest-migrated"

_SETTINGS_ROW_ID = 1


class LocalRepository:
    """Device-scoped storage for guest notes, settings, the offline queue and flags."""

    def __init__(self, database_url: str):
        """Initialize repository with database connection."""
        self.session_factory = init_database(database_url)

    def _get_session(self) -> Session:
        """Get a new database session."""
        return self.session_factory()

    # ==================== Note Operations ====================

    def load_notes(self) -> list[Note]:
        """Get all notes ordered by week key."""
        with self._get_session() as session:
            stmt = select(NoteRecord).order_by(NoteRecord.week_key)
            return [self._record_to_note(r) for r in session.scalars(stmt).all()]

    def get_note_by_week(self, week_key: str) -> Optional[Note]:
        with self._get_session() as session:
            stmt = select(NoteRecord).where(NoteRecord.week_key == week_key)
            record = session.scalars(stmt).first()
            return self._record_to_note(record) if record else None

    def insert_note(self, note: Note) -> Note:
        """Insert a note, assigning an id if it has none.

        Raises:
            DuplicateKeyError: If a note already exists for the week
        """
        if not note.id:
            note.id = str(uuid.uuid4())
        with self._get_session() as session:
            session.add(self._note_to_record(note))
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateKeyError(
                    f"A note already exists for week {note.week_key}", code="unique_violation"
                ) from e
        return note

    def update_note(self, note: Note) -> Note:
        """Overwrite the editable fields of an existing note."""
        with self._get_session() as session:
            record = session.get(NoteRecord, note.id)
            if record is None:
                raise PermanentBackendError(f"Note not found: {note.id}", code="not_found")
            record.title = note.title
            record.body = note.body
            record.mood = note.mood
            record.moment_type = note.moment_type.value
            record.tags = json.dumps(note.tags)
            record.updated_at = self._to_naive_utc(note.updated_at)
            session.commit()
        return note

    def delete_note(self, note_id: str) -> bool:
        """Delete a note by id. Returns False if it did not exist."""
        with self._get_session() as session:
            record = session.get(NoteRecord, note_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True

    def clear_notes(self) -> None:
        with self._get_session() as session:
            session.execute(delete(NoteRecord))
            session.commit()

    # ==================== Settings Operations ====================

    def load_settings(self) -> Optional[AppSettings]:
        """Get stored settings, or None if never saved."""
        with self._get_session() as session:
            record = session.get(SettingsRecord, _SETTINGS_ROW_ID)
            if record is None:
                return None
            return AppSettings.from_dict(json.loads(record.data))

    def save_settings(self, settings: AppSettings) -> AppSettings:
        with self._get_session() as session:
            record = session.get(SettingsRecord, _SETTINGS_ROW_ID)
            data = json.dumps(settings.to_dict())
            if record is None:
                session.add(SettingsRecord(id=_SETTINGS_ROW_ID, data=data))
            else:
                record.data = data
            session.commit()
        return settings

    def clear_settings(self) -> None:
        with self._get_session() as session:
            session.execute(delete(SettingsRecord))
            session.commit()

    # ==================== Pending Change Operations ====================

    def append_pending(self, change: PendingChange) -> PendingChange:
        with self._get_session() as session:
            session.add(
                PendingChangeRecord(
                    id=change.id,
                    change_type=change.change_type.value,
                    table_name=change.table.value,
                    data=json.dumps(change.data),
                    timestamp=change.timestamp,
                    attempts=change.attempts,
                    user_id=change.user_id,
                )
            )
            session.commit()
        return change

    def list_pending(self, user_id: Optional[str] = None) -> list[PendingChange]:
        """Get queued changes in the order they were appended.

        Args:
            user_id: Only changes made in this account (default: all)
        """
        with self._get_session() as session:
            stmt = select(PendingChangeRecord).order_by(PendingChangeRecord.seq)
            if user_id is not None:
                stmt = stmt.where(PendingChangeRecord.user_id == user_id)
            return [
                PendingChange(
                    id=r.id,
                    change_type=r.change_type,
                    table=r.table_name,
                    data=json.loads(r.data),
                    timestamp=r.timestamp,
                    attempts=r.attempts,
                    user_id=r.user_id,
                )
                for r in session.scalars(stmt).all()
            ]

    def count_pending(self, user_id: Optional[str] = None) -> int:
        with self._get_session() as session:
            query = session.query(PendingChangeRecord)
            if user_id is not None:
                query = query.filter(PendingChangeRecord.user_id == user_id)
            return query.count()

    def remove_pending(self, change_id: str) -> None:
        with self._get_session() as session:
            session.execute(delete(PendingChangeRecord).where(PendingChangeRecord.id == change_id))
            session.commit()

    def set_pending_attempts(self, change_id: str, attempts: int) -> None:
        with self._get_session() as session:
            stmt = select(PendingChangeRecord).where(PendingChangeRecord.id == change_id)
            record = session.scalars(stmt).first()
            if record:
                record.attempts = attempts
                session.commit()

    def clear_pending(self, user_id: Optional[str] = None) -> None:
        with self._get_session() as session:
            stmt = delete(PendingChangeRecord)
            if user_id is not None:
                stmt = stmt.where(PendingChangeRecord.user_id == user_id)
            session.execute(stmt)
            session.commit()

    # ==================== Flags ====================

    def get_flag(self, key: str) -> Optional[str]:
        with self._get_session() as session:
            record = session.get(FlagRecord, key)
            return record.value if record else None

    def set_flag(self, key: str, value: str) -> None:
        with self._get_session() as session:
            record = session.get(FlagRecord, key)
            if record is None:
                session.add(FlagRecord(key=key, value=value))
            else:
                record.value = value
            session.commit()

    def is_guest_migrated(self) -> bool:
        return self.get_flag(GUEST_MIGRATED_FLAG) == "true"

    def mark_guest_migrated(self) -> None:
        self.set_flag(GUEST_MIGRATED_FLAG, "true")

    def clear_guest_data(self) -> None:
        """Remove guest notes and settings. The migrated flag is kept."""
        self.clear_notes()
        self.clear_settings()

    # ==================== Helper Methods ====================

    @staticmethod
    def _to_naive_utc(value: datetime) -> datetime:
        # SQLite has no timezone support; store UTC wall time
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def _note_to_record(self, note: Note) -> NoteRecord:
        return NoteRecord(
            id=note.id,
            week_key=note.week_key,
            title=note.title,
            body=note.body,
            mood=note.mood,
            moment_type=note.moment_type.value,
            tags=json.dumps(note.tags),
            created_at=self._to_naive_utc(note.created_at),
            updated_at=self._to_naive_utc(note.updated_at),
            is_backfill=note.is_backfill,
        )

    @staticmethod
    def _record_to_note(record: NoteRecord) -> Note:
        """Convert database record to Note model."""
        return Note(
            id=record.id,
            week_key=record.week_key,
            title=record.title,
            body=record.body,
            mood=record.mood,
            moment_type=record.moment_type,
            tags=json.loads(record.tags) if record.tags else [],
            created_at=parse_timestamp(record.created_at),
            updated_at=parse_timestamp(record.updated_at),
            is_backfill=record.is_backfill,
        )
