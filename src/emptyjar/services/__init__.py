"""Services for Empty Jar."""

from emptyjar.services.connectivity import Connectivity
from emptyjar.services.guest_migration import GuestMigrationService, MigrationResult
from emptyjar.services.note_store import NoteStore
from emptyjar.services.pending_queue import PendingChangeQueue, ReplayReport
from emptyjar.services.reminders import ReminderState, is_email_reminder_due, should_show_reminder
from emptyjar.services.search import NoteFilters, all_tags, filter_notes
from emptyjar.services.session import Identity, JarSession, SessionManager, resolve_backend
from emptyjar.services.settings_store import SettingsStore

__all__ = [
    "Connectivity",
    "GuestMigrationService",
    "Identity",
    "JarSession",
    "MigrationResult",
    "NoteFilters",
    "NoteStore",
    "PendingChangeQueue",
    "ReminderState",
    "ReplayReport",
    "SessionManager",
    "SettingsStore",
    "all_tags",
    "filter_notes",
    "is_email_reminder_due",
    "resolve_backend",
    "should_show_reminder",
]
