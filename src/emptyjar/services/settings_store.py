"""Settings ledger, parallel to the note store."""

import logging
import re
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Optional

from emptyjar.backends.base import Backend
from emptyjar.errors import PermanentBackendError, SettingsValidationError, TransientNetworkError
from emptyjar.models.app_settings import DAY_NAMES, AppSettings
from emptyjar.models.pending_change import ChangeTable, ChangeType
from emptyjar.models.results import MutationResult
from emptyjar.services.connectivity import Connectivity
from emptyjar.services.pending_queue import PendingChangeQueue
from emptyjar.weeks import is_valid_week_key

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def validate_settings(settings: AppSettings) -> AppSettings:
    """Raise SettingsValidationError if any field is out of range."""
    if isinstance(settings.reminder_day, bool) or settings.reminder_day not in range(7):
        raise SettingsValidationError(f"Reminder day must be 0-6, got {settings.reminder_day!r}")
    for name in ("reminder_time", "email_reminder_time"):
        value = getattr(settings, name)
        if not isinstance(value, str) or not TIME_PATTERN.match(value):
            raise SettingsValidationError(f"{name} must be HH:MM, got {value!r}")
    if settings.email_reminder_day not in DAY_NAMES:
        raise SettingsValidationError(f"Unknown weekday: {settings.email_reminder_day!r}")
    if not settings.timezone:
        raise SettingsValidationError("Timezone is required")
    marker = settings.last_reminder_sent_week_key
    if marker is not None and not is_valid_week_key(marker):
        raise SettingsValidationError(f"Invalid week key: {marker!r}")
    return settings


class SettingsStore:
    """Owns the one settings record of a profile or account.

    Settings are created with defaults on first load and only ever updated
    in place. Writes follow the same persist-or-queue path as notes.
    """

    def __init__(
        self,
        backend: Backend,
        queue: Optional[PendingChangeQueue] = None,
        connectivity: Optional[Connectivity] = None,
    ):
        self.backend = backend
        self.queue = queue
        self.connectivity = connectivity or Connectivity()
        self._settings = AppSettings()

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    def load(self) -> AppSettings:
        """Load settings, saving defaults if none exist yet.

        A settings update still waiting in the queue wins over the stored
        record, and is used alone if the backend cannot be reached.
        """
        pending = self._pending_settings()
        try:
            stored = self.backend.load_settings()
        except TransientNetworkError:
            if pending is not None:
                self._settings = pending
            raise

        if pending is not None:
            stored = pending
        elif stored is None:
            logger.info("No settings found, creating defaults")
            stored = AppSettings()
            try:
                stored = self.backend.save_settings(stored)
            except TransientNetworkError:
                logger.warning("Could not save default settings, using them locally")
        self._settings = stored
        return self.settings

    reload = load

    def update(self, changes: Mapping[str, Any]) -> MutationResult:
        """Apply a partial update.

        Raises:
            SettingsValidationError: If a field is unknown or out of range
        """
        unknown = set(changes) - AppSettings.field_names()
        if unknown:
            raise SettingsValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        try:
            updated = replace(self._settings, **changes)
        except ValueError as e:
            raise SettingsValidationError(str(e)) from e
        validate_settings(updated)

        if self.backend.is_cloud and not self.connectivity.is_online:
            return self._enqueue(updated)
        try:
            stored = self.backend.save_settings(updated)
        except TransientNetworkError as e:
            if not self.backend.is_cloud:
                raise
            logger.warning("Cloud unreachable, queueing settings update: %s", e)
            self.connectivity.mark_offline()
            return self._enqueue(updated)
        except PermanentBackendError as e:
            logger.error("Backend rejected settings update: %s", e)
            return MutationResult.rejected(e.message)

        self._settings = stored
        return MutationResult.committed(settings=self.settings)

    def _enqueue(self, settings: AppSettings) -> MutationResult:
        if self.queue is None:
            raise RuntimeError("A pending change queue is required for cloud sessions")
        self.queue.append(ChangeType.UPDATE, ChangeTable.SETTINGS, settings.to_dict())
        self._settings = settings
        return MutationResult.queued(settings=self.settings)

    def _pending_settings(self) -> Optional[AppSettings]:
        if self.queue is None:
            return None
        entries = self.queue.entries_for(ChangeTable.SETTINGS)
        return AppSettings.from_dict(entries[-1].data) if entries else None
