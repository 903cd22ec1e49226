"""Durable queue of writes made while offline."""

import logging
from dataclasses import dataclass, field
from typing import Any

from emptyjar.backends.base import Backend
from emptyjar.database.repository import LocalRepository
from emptyjar.errors import DuplicateKeyError, PermanentBackendError, TransientNetworkError
from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note
from emptyjar.models.pending_change import ChangeTable, ChangeType, PendingChange

logger = logging.getLogger(__name__)


@dataclass
class ReplayReport:
    """Result of one pass over the queue."""

    applied: list[PendingChange] = field(default_factory=list)
    duplicates: list[PendingChange] = field(default_factory=list)
    failed: list[PendingChange] = field(default_factory=list)
    deferred: list[PendingChange] = field(default_factory=list)  # Behind a failed change to the same row
    dead_lettered: list[PendingChange] = field(default_factory=list)
    interrupted: bool = False  # Connection dropped mid-pass

    @property
    def completed(self) -> bool:
        """True if every entry was applied or dropped."""
        return not self.failed and not self.deferred and not self.interrupted

    def __str__(self) -> str:
        return (
            f"Replayed {len(self.applied)} change(s), "
            f"{len(self.duplicates)} already present, "
            f"{len(self.failed) + len(self.deferred)} waiting, {len(self.dead_lettered)} dropped"
        )


def _target(change: PendingChange) -> tuple[str, str]:
    """The row a change writes: the week for notes, the single settings row otherwise."""
    if change.table == ChangeTable.NOTES:
        return change.table.value, change.data.get("weekKey", "")
    return change.table.value, ""


class PendingChangeQueue:
    """FIFO log of mutations waiting for the cloud, scoped to one account.

    Entries are appended in call order and never rewritten; only the retry
    counter moves. A replay pass applies them oldest first. A duplicate
    key counts as already applied. Losing the connection stops the pass.
    Any other failure keeps the entry for the next pass until it has
    failed ``max_attempts`` times, after which it is dropped and logged.
    Later changes to the same row wait behind a failed one.
    """

    def __init__(self, repository: LocalRepository, user_id: str, max_attempts: int = 5):
        self.repository = repository
        self.user_id = user_id
        self.max_attempts = max_attempts

    def append(self, change_type: ChangeType, table: ChangeTable, data: dict[str, Any]) -> PendingChange:
        change = PendingChange(change_type=change_type, table=table, data=data, user_id=self.user_id)
        self.repository.append_pending(change)
        logger.info("Queued %s on %s (%s)", change.change_type.value, change.table.value, change.id)
        return change

    def entries(self) -> list[PendingChange]:
        return self.repository.list_pending(self.user_id)

    def entries_for(self, table: ChangeTable) -> list[PendingChange]:
        """Queued changes to one table, oldest first."""
        return [change for change in self.entries() if change.table == table]

    def remove(self, change_id: str) -> None:
        self.repository.remove_pending(change_id)

    def clear(self) -> None:
        self.repository.clear_pending(self.user_id)

    def __len__(self) -> int:
        return self.repository.count_pending(self.user_id)

    def __bool__(self) -> bool:
        return len(self) > 0

    def replay(self, backend: Backend) -> ReplayReport:
        """Apply this account's queued changes to ``backend`` in FIFO order.

        Args:
            backend: The cloud backend of the current session

        Returns:
            ReplayReport describing what happened to each entry
        """
        report = ReplayReport()
        entries = self.entries()
        if not entries:
            return report

        logger.info("Replaying %d pending change(s)", len(entries))
        blocked: set[tuple[str, str]] = set()
        for change in entries:
            target = _target(change)
            if target in blocked:
                logger.debug("Holding %s behind a failed change to the same row", change.id)
                report.deferred.append(change)
                continue
            try:
                self._apply(backend, change)
            except DuplicateKeyError:
                logger.info("Change %s already present in the cloud, skipping", change.id)
                self.remove(change.id)
                report.duplicates.append(change)
            except TransientNetworkError as e:
                logger.warning("Connection lost during replay at %s: %s", change.id, e)
                report.interrupted = True
                break
            except PermanentBackendError as e:
                change.attempts += 1
                if change.attempts >= self.max_attempts:
                    logger.error(
                        "Dropping change %s after %d failed attempts: %s",
                        change.id,
                        change.attempts,
                        e,
                    )
                    self.remove(change.id)
                    report.dead_lettered.append(change)
                else:
                    logger.warning("Replay of %s failed (attempt %d): %s", change.id, change.attempts, e)
                    self.repository.set_pending_attempts(change.id, change.attempts)
                    report.failed.append(change)
                    blocked.add(target)
            else:
                self.remove(change.id)
                report.applied.append(change)

        logger.info("%s", report)
        return report

    @staticmethod
    def _apply(backend: Backend, change: PendingChange) -> None:
        if change.table == ChangeTable.SETTINGS:
            backend.save_settings(AppSettings.from_dict(change.data))
            return

        note = Note.from_dict(change.data)
        if change.change_type == ChangeType.CREATE:
            backend.insert_note(note)
        elif change.change_type == ChangeType.UPDATE:
            backend.update_note(note)
        else:
            backend.delete_note(note)
