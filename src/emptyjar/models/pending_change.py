"""Queued offline mutation."""

import secrets
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChangeType(str, Enum):
    """Kind of mutation waiting to be replayed."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ChangeTable(str, Enum):
    """Collection the mutation targets."""

    NOTES = "notes"
    SETTINGS = "settings"


_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    return int(time.time() * 1000)


def new_pending_id(timestamp: int) -> str:
    """Build an id like ``pending-1736424000000-k3j9x0a2b``."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"pending-{timestamp}-{suffix}"


@dataclass
class PendingChange:
    """A write that failed while offline, kept until it is replayed."""

    change_type: ChangeType
    table: ChangeTable
    data: dict[str, Any]
    timestamp: int = field(default_factory=now_ms)
    id: str = ""
    attempts: int = 0  # Permanent failures seen during replay
    user_id: str = ""  # Account the change was made in

    def __post_init__(self) -> None:
        if isinstance(self.change_type, str):
            self.change_type = ChangeType(self.change_type)
        if isinstance(self.table, str):
            self.table = ChangeTable(self.table)
        if not self.id:
            self.id = new_pending_id(self.timestamp)
