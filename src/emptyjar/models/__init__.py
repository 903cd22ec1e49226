"""Data models for Empty Jar."""

from emptyjar.models.app_settings import DAY_NAMES, AppSettings, ThemeMode
from emptyjar.models.note import MOOD_LABELS, MomentType, Note
from emptyjar.models.pending_change import ChangeTable, ChangeType, PendingChange
from emptyjar.models.results import MutationResult, MutationStatus
from emptyjar.models.week import WeekInfo, WeekKey

__all__ = [
    "AppSettings",
    "ChangeTable",
    "ChangeType",
    "DAY_NAMES",
    "MOOD_LABELS",
    "MomentType",
    "MutationResult",
    "MutationStatus",
    "Note",
    "PendingChange",
    "ThemeMode",
    "WeekInfo",
    "WeekKey",
]
