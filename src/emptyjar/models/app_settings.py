"""Per-profile application settings."""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Optional

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]


class ThemeMode(str, Enum):
    """Colour theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


_CAMEL_NAMES = {
    "reminder_day": "reminderDay",
    "reminder_time": "reminderTime",
    "theme_mode": "themeMode",
    "reduced_motion": "reducedMotion",
    "hide_notes": "hideNotes",
    "email_reminders_enabled": "emailRemindersEnabled",
    "email_reminder_day": "emailReminderDay",
    "email_reminder_time": "emailReminderTime",
    "timezone": "timezone",
    "last_reminder_sent_week_key": "lastReminderSentWeekKey",
}


@dataclass
class AppSettings:
    """Reminder, privacy and display preferences for one profile or account."""

    # In-app reminder banner
    reminder_day: int = 0  # Sunday = 0, Saturday = 6
    reminder_time: str = "18:00"  # HH:MM

    theme_mode: ThemeMode = ThemeMode.LIGHT
    reduced_motion: bool = False
    hide_notes: bool = False  # Privacy mode

    # Read by the scheduled e-mail reminder job
    email_reminders_enabled: bool = False
    email_reminder_day: str = "Sunday"
    email_reminder_time: str = "19:00"
    timezone: str = "America/New_York"
    last_reminder_sent_week_key: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.theme_mode, str):
            self.theme_mode = ThemeMode(self.theme_mode)

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    def to_row(self, user_id: Optional[str] = None) -> dict[str, Any]:
        """Snake_case row, as stored in the cloud."""
        row = asdict(self)
        row["theme_mode"] = self.theme_mode.value
        if user_id is not None:
            row["user_id"] = user_id
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AppSettings":
        """Build from a row, filling any missing column with its default."""
        known = cls.field_names()
        return cls(**{k: v for k, v in row.items() if k in known and v is not None})

    def to_dict(self) -> dict[str, Any]:
        """CamelCase shape used in local storage."""
        return {_CAMEL_NAMES[k]: v for k, v in self.to_row().items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        reverse = {camel: snake for snake, camel in _CAMEL_NAMES.items()}
        return cls.from_row({reverse[k]: v for k, v in data.items() if k in reverse})
