"""One-time copy of guest notes into a newly signed-in account."""

import logging
from dataclasses import dataclass, field, replace

from emptyjar.backends.cloud import CloudBackend
from emptyjar.database.repository import LocalRepository
from emptyjar.errors import DuplicateKeyError
from emptyjar.models.note import Note

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Result of a migration attempt."""

    copied: list[Note] = field(default_factory=list)
    skipped_duplicates: list[Note] = field(default_factory=list)
    skipped: bool = False  # Profile was already migrated
    declined: bool = False

    def __str__(self) -> str:
        if self.skipped:
            return "Guest notes already migrated"
        if self.declined:
            return "Guest notes discarded"
        return (
            f"Copied {len(self.copied)} guest note(s), "
            f"{len(self.skipped_duplicates)} already in the account"
        )


class GuestMigrationService:
    """Moves a guest profile's notes into the cloud, at most once.

    The migrated flag lives in its own local namespace, so it survives the
    purge of guest notes and settings and a later sign-in never asks again.
    Declining also sets the flag; the guest notes are then abandoned.
    """

    def __init__(self, repository: LocalRepository, cloud: CloudBackend):
        """Initialize the migration service.

        Args:
            repository: Local device database holding the guest profile
            cloud: Backend of the account being signed in to
        """
        self.repository = repository
        self.cloud = cloud

    @property
    def is_migrated(self) -> bool:
        return self.repository.is_guest_migrated()

    def candidates(self) -> list[Note]:
        """Guest notes waiting for the user's decision; empty once migrated."""
        if self.is_migrated:
            return []
        return self.repository.load_notes()

    def sync(self) -> MigrationResult:
        """Copy guest notes into the account, then purge them locally.

        Rows the account already holds for a week are skipped, so an
        interrupted migration can simply be run again. If the cloud becomes
        unreachable the TransientNetworkError propagates and the flag stays
        unset.
        """
        if self.is_migrated:
            return MigrationResult(skipped=True)

        result = MigrationResult()
        notes = self.repository.load_notes()
        logger.info("Migrating %d guest note(s) to account %s", len(notes), self.cloud.user_id)

        for note in notes:
            try:
                # The server assigns account-side ids
                result.copied.append(self.cloud.insert_note(replace(note, id="")))
            except DuplicateKeyError:
                logger.warning("Week %s already has a note in the account, skipping", note.week_key)
                result.skipped_duplicates.append(note)

        self.repository.mark_guest_migrated()
        self.repository.clear_guest_data()
        logger.info("%s", result)
        return result

    def decline(self) -> MigrationResult:
        """Mark the profile migrated without copying anything."""
        if self.is_migrated:
            return MigrationResult(skipped=True)
        self.repository.mark_guest_migrated()
        logger.info("Guest migration declined")
        return MigrationResult(declined=True)

    def run(self, confirm: bool) -> MigrationResult:
        return self.sync() if confirm else self.decline()
