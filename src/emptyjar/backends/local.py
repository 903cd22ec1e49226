"""Guest-mode backend on the local device database."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from emptyjar.backends.base import Backend, BackendKind
from emptyjar.database.repository import LocalRepository
from emptyjar.errors import PermanentBackendError
from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note

logger = logging.getLogger(__name__)


class LocalBackend(Backend):
    """Synchronous storage scoped to this device profile."""

    kind = BackendKind.LOCAL

    def __init__(self, repository: LocalRepository):
        self.repository = repository

    def load_notes(self) -> list[Note]:
        try:
            return self.repository.load_notes()
        except SQLAlchemyError as e:
            logger.error("Failed to load notes from local storage: %s", e)
            raise PermanentBackendError(f"Local storage error: {e}") from e

    def insert_note(self, note: Note) -> Note:
        try:
            return self.repository.insert_note(note)
        except SQLAlchemyError as e:
            raise PermanentBackendError(f"Local storage error: {e}") from e

    def update_note(self, note: Note) -> Note:
        try:
            return self.repository.update_note(note)
        except SQLAlchemyError as e:
            raise PermanentBackendError(f"Local storage error: {e}") from e

    def delete_note(self, note: Note) -> None:
        try:
            self.repository.delete_note(note.id)
        except SQLAlchemyError as e:
            raise PermanentBackendError(f"Local storage error: {e}") from e

    def load_settings(self) -> Optional[AppSettings]:
        try:
            return self.repository.load_settings()
        except (SQLAlchemyError, ValueError) as e:
            logger.error("Failed to load settings from local storage: %s", e)
            raise PermanentBackendError(f"Local storage error: {e}") from e

    def save_settings(self, settings: AppSettings) -> AppSettings:
        try:
            return self.repository.save_settings(settings)
        except SQLAlchemyError as e:
            raise PermanentBackendError(f"Local storage error: {e}") from e
