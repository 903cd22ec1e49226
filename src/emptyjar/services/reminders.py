"""Reminder decisions for the in-app banner and the weekly e-mail."""

import logging
from collections.abc import Callable
from datetime import datetime, time
from typing import Optional

from emptyjar.models.app_settings import DAY_NAMES, AppSettings
from emptyjar.weeks import local_now, week_key_of

logger = logging.getLogger(__name__)


def _parse_time(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def weekday_index(moment: datetime) -> int:
    """Weekday with Sunday = 0 through Saturday = 6."""
    return moment.isoweekday() % 7


def should_show_reminder(
    reminder_day: int,
    reminder_time: str,
    now: datetime,
    has_note_for_current_week: bool,
) -> bool:
    """True on the reminder day, from the reminder time on, until a note exists."""
    if has_note_for_current_week:
        return False
    if weekday_index(now) != reminder_day:
        return False
    return now.time() >= _parse_time(reminder_time)


class ReminderState:
    """In-app reminder banner with dismissal that lasts for the session only."""

    def __init__(self) -> None:
        self.dismissed = False

    def show(self, settings: AppSettings, now: datetime, has_note_for_current_week: bool) -> bool:
        if self.dismissed:
            return False
        return should_show_reminder(
            settings.reminder_day,
            settings.reminder_time,
            now,
            has_note_for_current_week,
        )

    def dismiss(self) -> None:
        self.dismissed = True


def is_email_reminder_due(
    settings: AppSettings,
    note_exists: Callable[[str], bool],
    now: Optional[datetime] = None,
) -> bool:
    """Decide whether the scheduled job should e-mail this account now.

    The check runs in the account's timezone: reminders must be enabled,
    not yet sent for the local week, the local weekday and hour must match
    the configured day and time, and the week must still be empty.

    Args:
        settings: The account's settings row
        note_exists: Looks up whether a note exists for a week key
        now: Current instant (default: now, UTC)
    """
    if not settings.email_reminders_enabled:
        return False

    local = local_now(settings.timezone, now)
    week_key = week_key_of(local.date())
    if settings.last_reminder_sent_week_key == week_key:
        logger.debug("Reminder already sent for week %s", week_key)
        return False

    if DAY_NAMES[weekday_index(local)] != settings.email_reminder_day:
        return False
    if local.hour != _parse_time(settings.email_reminder_time).hour:
        return False

    return not note_exists(week_key)
