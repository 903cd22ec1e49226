"""ISO week keys.

Weeks run Monday to Sunday and week 1 is the week holding the year's first
Thursday. A week key is the zero-padded string ``YYYY-WW``; because the
format is fixed width, plain string comparison orders keys chronologically.

The scheduled e-mail reminder job computes week keys per account timezone
with :func:`week_key_for_timezone`, which shares the same algorithm.
"""

import logging
import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from emptyjar.errors import WeekKeyFormatError
from emptyjar.models.note import Note
from emptyjar.models.week import WeekInfo, WeekKey

logger = logging.getLogger(__name__)

WEEK_KEY_PATTERN = re.compile(r"^\d{4}-(0[1-9]|[1-4][0-9]|5[0-3])$")


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def week_key_of(value: date) -> str:
    """Get the ISO week key containing a date (or the date part of a datetime)."""
    day = _as_date(value)
    # Thursday of the same Monday-start week decides the ISO year
    thursday = day + timedelta(days=3 - day.weekday())
    days_since_jan1 = (thursday - date(thursday.year, 1, 1)).days
    week_number = days_since_jan1 // 7 + 1
    return format_week_key(thursday.year, week_number)


def format_week_key(year: int, week_number: int) -> str:
    return f"{year:04d}-{week_number:02d}"


def is_valid_week_key(week_key: str) -> bool:
    """True for a zero-padded YYYY-WW key whose week exists in that year."""
    if not isinstance(week_key, str) or WEEK_KEY_PATTERN.match(week_key) is None:
        return False
    year, week = int(week_key[:4]), int(week_key[5:])
    if year < 1:
        return False
    # Week 53 only exists in long years
    return week <= 52 or weeks_in_year_count(year) == 53


def validate_week_key(week_key: str) -> str:
    """Return the key unchanged, or raise WeekKeyFormatError."""
    if not is_valid_week_key(week_key):
        raise WeekKeyFormatError(week_key)
    return week_key


def parse_week_key(week_key: str) -> WeekKey:
    """Split a week key into year and week number.

    Raises:
        WeekKeyFormatError: If the key is not zero-padded YYYY-WW, or names
            week 53 of a 52-week year
    """
    validate_week_key(week_key)
    year, week = week_key.split("-")
    return WeekKey(year=int(year), week_number=int(week))


def week_start(week_number: int, year: int) -> date:
    """Monday of an ISO week."""
    first_monday = date.fromisocalendar(year, 1, 1)
    return first_monday + timedelta(weeks=week_number - 1)


def week_end(start: date) -> date:
    """Sunday closing the week that begins on ``start``."""
    return start + timedelta(days=6)


def week_bounds(week_key: str) -> tuple[date, date]:
    parsed = parse_week_key(week_key)
    start = week_start(parsed.week_number, parsed.year)
    return start, week_end(start)


def weeks_in_year_count(year: int) -> int:
    """Number of ISO weeks in a year: 52, or 53 for long years.

    If December 31 already belongs to week 1 of the next year, the year
    has exactly 52 weeks.
    """
    last_week = int(week_key_of(date(year, 12, 31))[5:])
    if last_week == 1:
        return 52
    return min(last_week, 53)


def weeks_in_year(
    year: int,
    notes: Iterable[Note],
    today: Optional[date] = None,
) -> list[WeekInfo]:
    """Build the timeline for a year.

    Args:
        year: ISO year to lay out
        notes: Notes to match against each week by week key
        today: Reference date for current/past/future flags (default: today)

    Returns:
        One WeekInfo per ISO week, in order
    """
    by_key = {note.week_key: note for note in notes}
    current = parse_week_key(week_key_of(today or date.today()))
    current_pos = (current.year, current.week_number)

    weeks: list[WeekInfo] = []
    for week_number in range(1, weeks_in_year_count(year) + 1):
        key = format_week_key(year, week_number)
        start = week_start(week_number, year)
        note = by_key.get(key)
        pos = (year, week_number)
        weeks.append(
            WeekInfo(
                week_key=key,
                week_number=week_number,
                year=year,
                start_date=start,
                end_date=week_end(start),
                has_note=note is not None,
                note=note,
                is_current=pos == current_pos,
                is_past=pos < current_pos,
                is_future=pos > current_pos,
            )
        )
    return weeks


def format_date_range(start: date, end: date) -> str:
    """Format a week span like ``Jan 6 – Jan 12``."""
    return f"{start.strftime('%b')} {start.day} – {end.strftime('%b')} {end.day}"


def local_now(tz_name: str, now: Optional[datetime] = None) -> datetime:
    """Current time in an IANA timezone, falling back to UTC for unknown zones."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", tz_name)
        tz = timezone.utc
    return now.astimezone(tz)


def week_key_for_timezone(tz_name: str, now: Optional[datetime] = None) -> str:
    """Week key of the local date in ``tz_name``."""
    return week_key_of(local_now(tz_name, now).date())
