"""Derived week information for the timeline."""

from dataclasses import dataclass
from datetime import date
from typing import NamedTuple, Optional

from emptyjar.models.note import Note


class WeekKey(NamedTuple):
    """Parsed form of a YYYY-WW week key."""

    year: int
    week_number: int


@dataclass
class WeekInfo:
    """One ISO week of a year, recomputed on demand and never persisted."""

    week_key: str
    week_number: int
    year: int
    start_date: date  # Monday
    end_date: date  # Sunday
    has_note: bool = False
    note: Optional[Note] = None
    is_current: bool = False
    is_past: bool = False
    is_future: bool = False
