"""Note model for Empty Jar."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

LOCAL_ID_PREFIX = "local-"

MOOD_LABELS = {
    1: "Rough",
    2: "Meh",
    3: "Okay",
    4: "Good",
    5: "Great",
}


class MomentType(str, Enum):
    """Category of the moment a note captures."""

    SMALL_WIN = "small-win"
    BIG_WIN = "big-win"
    PEOPLE = "people"
    HEALTH = "health"
    WORK = "work"
    LEARNING = "learning"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string (or pass through a datetime) as aware UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Note:
    """One reflective note for one ISO week."""

    week_key: str  # YYYY-WW
    body: str
    mood: int = 3
    moment_type: MomentType = MomentType.OTHER
    title: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    id: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    is_backfill: bool = False  # Fixed at creation

    def __post_init__(self) -> None:
        """Validate and convert fields after initialization."""
        if isinstance(self.moment_type, str):
            self.moment_type = MomentType(self.moment_type)
        # Tags behave as a set but keep their first-seen order
        self.tags = list(dict.fromkeys(t for t in self.tags if t))

    @property
    def is_local(self) -> bool:
        """True if the id was assigned on this device and never confirmed."""
        return self.id.startswith(LOCAL_ID_PREFIX)

    @property
    def mood_label(self) -> str:
        return MOOD_LABELS.get(self.mood, "")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape used in local storage and export."""
        data: dict[str, Any] = {
            "id": self.id,
            "weekKey": self.week_key,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "body": self.body,
            "mood": self.mood,
            "momentType": self.moment_type.value,
            "tags": list(self.tags),
            "isBackfill": self.is_backfill,
        }
        if self.title:
            data["title"] = self.title
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        return cls(
            id=data.get("id", ""),
            week_key=data["weekKey"],
            title=data.get("title") or None,
            body=data["body"],
            mood=int(data.get("mood", 3)),
            moment_type=data.get("momentType", MomentType.OTHER.value),
            tags=list(data.get("tags") or []),
            created_at=parse_timestamp(data["createdAt"]) if data.get("createdAt") else utcnow(),
            updated_at=parse_timestamp(data["updatedAt"]) if data.get("updatedAt") else utcnow(),
            is_backfill=bool(data.get("isBackfill", False)),
        )

    def to_row(self, user_id: str) -> dict[str, Any]:
        """Convert to a cloud row. Locally-assigned ids are left for the server."""
        row: dict[str, Any] = {
            "user_id": user_id,
            "week_key": self.week_key,
            "title": self.title,
            "body": self.body,
            "mood": self.mood,
            "moment_type": self.moment_type.value,
            "tags": list(self.tags),
            "is_backfill": self.is_backfill,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }
        if self.id and not self.is_local:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Note":
        return cls(
            id=str(row["id"]),
            week_key=row["week_key"],
            title=row.get("title") or None,
            body=row["body"],
            mood=int(row["mood"]),
            moment_type=row["moment_type"],
            tags=list(row.get("tags") or []),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
            is_backfill=bool(row.get("is_backfill", False)),
        )
