"""Exception hierarchy for Empty Jar.

Validation and invariant errors are raised synchronously and leave state
untouched. Backend errors are classified so callers can tell a lost
connection (queue and retry later) from a real rejection (surface it).
"""


class EmptyJarError(Exception):
    """Base class for all Empty Jar errors."""

    pass


# ==================== Validation ====================


class ValidationError(EmptyJarError):
    """Input failed validation."""

    pass


class WeekKeyFormatError(ValidationError):
    """A week key does not match the zero-padded YYYY-WW pattern.

    Args:
        week_key (str): The rejected value
    """

    def __init__(self, week_key: str):
        self.week_key = week_key
        super().__init__(f"Invalid week key: {week_key!r} (expected YYYY-WW)")


class NoteValidationError(ValidationError):
    """A note field is missing or out of range."""

    pass


class SettingsValidationError(ValidationError):
    """A settings field is out of range."""

    pass


# ==================== Invariants ====================


class InvariantViolation(EmptyJarError):
    """An operation would break a ledger invariant."""

    pass


class DuplicateWeekError(InvariantViolation):
    """A note already exists for the week."""

    def __init__(self, week_key: str):
        self.week_key = week_key
        super().__init__(f"A note already exists for week {week_key}")


class EditWindowError(InvariantViolation):
    """Notes can only be edited during their own week."""

    def __init__(self, week_key: str, current_week_key: str):
        self.week_key = week_key
        self.current_week_key = current_week_key
        super().__init__(
            f"Note for week {week_key} can no longer be edited "
            f"(current week is {current_week_key})"
        )


class NoteNotFoundError(EmptyJarError):
    """No note with the given id."""

    def __init__(self, note_id: str):
        self.note_id = note_id
        super().__init__(f"Note not found: {note_id}")


# ==================== Backends ====================


class BackendError(EmptyJarError):
    """Exception raised by a persistence backend.

    Args:
        message (str): Error message
        status_code (int): HTTP status code, 0 when not an HTTP failure
        code (str): Backend error code

    Attributes:
        message (str): Error message
        status_code (int): HTTP status code
        code (str): Backend error code
    """

    def __init__(self, message: str, status_code: int = 0, code: str = ""):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class TransientNetworkError(BackendError):
    """The backend could not be reached (offline, timeout)."""

    pass


class PermanentBackendError(BackendError):
    """The backend rejected the request for a reason unrelated to connectivity."""

    pass


class DuplicateKeyError(BackendError):
    """The backend already holds a row with the same natural key."""

    pass
