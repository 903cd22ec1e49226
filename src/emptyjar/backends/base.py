"""Common contract for local and cloud persistence."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note


class BackendKind(str, Enum):
    """Which storage a session writes to. Chosen once per session."""

    LOCAL = "local"  # Guest profile on this device
    CLOUD = "cloud"  # Signed-in account


class Backend(ABC):
    """Load/save/delete for notes and settings.

    Implementations raise subclasses of ``emptyjar.errors.BackendError``:
    TransientNetworkError when the store cannot be reached,
    DuplicateKeyError when a week already has a note, and
    PermanentBackendError for anything else.
    """

    kind: BackendKind

    @abstractmethod
    def load_notes(self) -> list[Note]:
        """Get every note of the profile or account."""

    @abstractmethod
    def insert_note(self, note: Note) -> Note:
        """Persist a new note and return it with any store-assigned fields."""

    @abstractmethod
    def update_note(self, note: Note) -> Note:
        """Persist the editable fields of an existing note."""

    @abstractmethod
    def delete_note(self, note: Note) -> None:
        """Remove a note. Removing a missing note is not an error."""

    @abstractmethod
    def load_settings(self) -> Optional[AppSettings]:
        """Get stored settings, or None if none were ever saved."""

    @abstractmethod
    def save_settings(self, settings: AppSettings) -> AppSettings:
        """Create or overwrite the settings."""

    @property
    def is_cloud(self) -> bool:
        return self.kind == BackendKind.CLOUD
