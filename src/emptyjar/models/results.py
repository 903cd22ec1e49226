"""Outcome of a store mutation."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note


class MutationStatus(str, Enum):
    """How a mutation ended."""

    COMMITTED = "committed"  # Persisted by the active backend
    QUEUED = "queued"  # Applied in memory, waiting in the offline queue
    REJECTED = "rejected"  # Refused by the backend, state unchanged


@dataclass
class MutationResult:
    """Result of an add/update/delete or settings update."""

    status: MutationStatus
    note: Optional[Note] = None
    settings: Optional[AppSettings] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True if the mutation is visible in memory."""
        return self.status != MutationStatus.REJECTED

    @property
    def is_queued(self) -> bool:
        return self.status == MutationStatus.QUEUED

    @classmethod
    def committed(cls, note: Optional[Note] = None, settings: Optional[AppSettings] = None) -> "MutationResult":
        return cls(MutationStatus.COMMITTED, note=note, settings=settings)

    @classmethod
    def queued(cls, note: Optional[Note] = None, settings: Optional[AppSettings] = None) -> "MutationResult":
        return cls(MutationStatus.QUEUED, note=note, settings=settings)

    @classmethod
    def rejected(cls, reason: str) -> "MutationResult":
        return cls(MutationStatus.REJECTED, reason=reason)
