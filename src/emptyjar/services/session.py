"""Session wiring: backend selection, auth and connectivity events."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from emptyjar.backends.base import Backend
from emptyjar.backends.cloud import CloudBackend
from emptyjar.backends.cloud_client import CloudClient
from emptyjar.backends.local import LocalBackend
from emptyjar.config import Settings
from emptyjar.database.repository import LocalRepository
from emptyjar.errors import TransientNetworkError
from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note
from emptyjar.models.results import MutationResult
from emptyjar.models.week import WeekInfo
from emptyjar.services.connectivity import Connectivity
from emptyjar.services.guest_migration import GuestMigrationService, MigrationResult
from emptyjar.services.note_store import Clock, NoteStore
from emptyjar.services.pending_queue import PendingChangeQueue, ReplayReport
from emptyjar.services.reminders import ReminderState
from emptyjar.services.settings_store import SettingsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The signed-in account, as reported by the authentication provider."""

    user_id: str
    email: Optional[str] = None
    access_token: str = ""


CloudClientFactory = Callable[[Identity], CloudClient]


def resolve_backend(
    identity: Optional[Identity],
    repository: LocalRepository,
    cloud_client_factory: Optional[CloudClientFactory] = None,
) -> Backend:
    """Pick the backend for a session: local for guests, cloud for accounts."""
    if identity is None:
        return LocalBackend(repository)
    if cloud_client_factory is None:
        raise ValueError("A cloud client factory is required for signed-in sessions")
    return CloudBackend(cloud_client_factory(identity), identity.user_id)


class JarSession:
    """Everything the user interface talks to during one identity's session.

    The backend is fixed for the lifetime of the session. Cloud sessions
    also own the offline queue, replayed whenever connectivity returns, and
    the guest migration prompt.
    """

    def __init__(
        self,
        backend: Backend,
        repository: LocalRepository,
        connectivity: Optional[Connectivity] = None,
        clock: Clock = datetime.now,
        max_attempts: int = 5,
        identity: Optional[Identity] = None,
    ):
        self.backend = backend
        self.repository = repository
        self.identity = identity
        self.connectivity = connectivity or Connectivity()
        self.clock = clock

        self.queue: Optional[PendingChangeQueue] = None
        self.migration: Optional[GuestMigrationService] = None
        if isinstance(backend, CloudBackend):
            self.queue = PendingChangeQueue(repository, backend.user_id, max_attempts=max_attempts)
            self.migration = GuestMigrationService(repository, backend)

        self.notes = NoteStore(backend, self.queue, self.connectivity, clock)
        self.settings_store = SettingsStore(backend, self.queue, self.connectivity)
        self.reminder = ReminderState()
        self._migration_candidates: list[Note] = []
        self._unsubscribe = self.connectivity.subscribe(self._on_connectivity_changed)

    @property
    def is_guest(self) -> bool:
        return not self.backend.is_cloud

    # ==================== Lifecycle ====================

    def start(self, replay_pending: bool = True) -> None:
        """Flush anything left queued by an earlier run, then load state."""
        if replay_pending and self.queue is not None and self.connectivity.is_online and self.queue:
            self.sync()
        self._load()

    def close(self) -> None:
        self._unsubscribe()

    def _load(self) -> None:
        for store in (self.notes, self.settings_store):
            try:
                store.load()
            except TransientNetworkError as e:
                logger.warning("Cloud unreachable while loading, working offline: %s", e)
                self.connectivity.mark_offline()

    def _on_connectivity_changed(self, online: bool) -> None:
        if online:
            self.sync()

    def sync(self) -> Optional[ReplayReport]:
        """Replay the offline queue and reconcile with the cloud."""
        if self.queue is None:
            return None
        report = self.queue.replay(self.backend)
        if report.interrupted:
            self.connectivity.mark_offline()
        elif report.applied or report.duplicates or report.dead_lettered:
            # Entries still queued are reapplied on top of the reload
            self._load()
        return report

    def refresh_identity(self, identity: Identity) -> None:
        """Use a new access token for the same account."""
        self.identity = identity
        if isinstance(self.backend, CloudBackend) and identity.access_token:
            self.backend.client.access_token = identity.access_token
            logger.debug("Access token refreshed for %s", identity.user_id)

    # ==================== Notes ====================

    @property
    def current_week_key(self) -> str:
        return self.notes.current_week_key

    def weeks(self, year: Optional[int] = None) -> list[WeekInfo]:
        return self.notes.weeks(year)

    def add_note(self, data: dict[str, Any]) -> MutationResult:
        return self.notes.add(data)

    def update_note(self, note_id: str, changes: dict[str, Any]) -> MutationResult:
        return self.notes.update(note_id, changes)

    def delete_note(self, note_id: str) -> MutationResult:
        return self.notes.delete(note_id)

    def get_for_week(self, week_key: str) -> Optional[Note]:
        return self.notes.get_for_week(week_key)

    def has_for_week(self, week_key: str) -> bool:
        return self.notes.has_for_week(week_key)

    def can_edit(self, week_key: str) -> bool:
        return self.notes.can_edit(week_key)

    def export_notes(self) -> list[Note]:
        """Week-ordered notes for the export collaborator."""
        return self.notes.sorted_notes()

    # ==================== Settings and reminders ====================

    @property
    def settings(self) -> AppSettings:
        return self.settings_store.settings

    def update_settings(self, changes: dict[str, Any]) -> MutationResult:
        return self.settings_store.update(changes)

    def show_reminder(self) -> bool:
        return self.reminder.show(
            self.settings,
            self.clock(),
            self.notes.has_for_week(self.current_week_key),
        )

    def dismiss_reminder(self) -> None:
        self.reminder.dismiss()

    # ==================== Guest migration ====================

    def check_guest_migration(self) -> list[Note]:
        """Collect guest notes to offer for import into this account."""
        if self.migration is None:
            return []
        self._migration_candidates = self.migration.candidates()
        if self._migration_candidates:
            logger.info("%d guest note(s) can be synced to the account", len(self._migration_candidates))
        return list(self._migration_candidates)

    def guest_notes_to_sync(self) -> list[Note]:
        return list(self._migration_candidates)

    def sync_guest_notes(self) -> MigrationResult:
        """User accepted: copy guest notes into the account and reload."""
        if self.migration is None:
            raise RuntimeError("Guest notes can only be synced into an account")
        result = self.migration.sync()
        self._migration_candidates = []
        if result.copied:
            self._load()
        return result

    def dismiss_sync_prompt(self) -> MigrationResult:
        """User declined: guest notes are abandoned for good."""
        if self.migration is None:
            raise RuntimeError("No guest migration in a guest session")
        self._migration_candidates = []
        return self.migration.decline()


class SessionManager:
    """Builds a new session each time the signed-in identity changes.

    Args:
        repository: Local device database
        connectivity: Shared online/offline state
        cloud_client_factory: Creates a cloud client for an identity
        clock: Returns the user's current local time
        max_attempts: Replay attempts before a queued change is dropped
    """

    def __init__(
        self,
        repository: LocalRepository,
        connectivity: Optional[Connectivity] = None,
        cloud_client_factory: Optional[CloudClientFactory] = None,
        clock: Clock = datetime.now,
        max_attempts: int = 5,
    ):
        self.repository = repository
        self.connectivity = connectivity or Connectivity()
        self.cloud_client_factory = cloud_client_factory
        self.clock = clock
        self.max_attempts = max_attempts
        self.session: Optional[JarSession] = None
        self._seen_user_ids: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings, connectivity: Optional[Connectivity] = None) -> "SessionManager":
        settings.database_path.parent.mkdir(parents=True, exist_ok=True)

        def cloud_client_factory(identity: Identity) -> CloudClient:
            return CloudClient(
                base_url=settings.cloud_url,
                api_key=settings.cloud_api_key,
                access_token=identity.access_token,
                timeout=settings.request_timeout,
            )

        return cls(
            LocalRepository(settings.database_url),
            connectivity=connectivity,
            cloud_client_factory=cloud_client_factory,
            max_attempts=settings.replay_max_attempts,
        )

    def open(self, identity: Optional[Identity], replay_pending: bool = True) -> JarSession:
        """Close the current session and start one for ``identity`` (None = guest)."""
        if self.session is not None:
            self.session.close()

        backend = resolve_backend(identity, self.repository, self.cloud_client_factory)
        session = JarSession(
            backend,
            self.repository,
            connectivity=self.connectivity,
            clock=self.clock,
            max_attempts=self.max_attempts,
            identity=identity,
        )
        session.start(replay_pending=replay_pending)
        self.session = session
        logger.info("Opened %s session", backend.kind.value)

        if identity is not None and identity.user_id not in self._seen_user_ids:
            self._seen_user_ids.add(identity.user_id)
            session.check_guest_migration()
        return session

    def on_auth_changed(self, identity: Optional[Identity]) -> JarSession:
        """Handle a sign-in or sign-out reported by the auth provider."""
        current = self.session
        if current is not None and self._user_id(current.identity) == self._user_id(identity):
            if identity is not None:
                current.refresh_identity(identity)
            return current
        return self.open(identity)

    @staticmethod
    def _user_id(identity: Optional[Identity]) -> Optional[str]:
        return identity.user_id if identity else None
