"""Unit tests for ISO week keys."""

from datetime import date, datetime, timedelta, timezone

import pytest

from emptyjar.errors import WeekKeyFormatError
from emptyjar.models.note import Note
from emptyjar.weeks import (
    format_date_range,
    is_valid_week_key,
    parse_week_key,
    week_bounds,
    week_end,
    week_key_for_timezone,
    week_key_of,
    week_start,
    weeks_in_year,
    weeks_in_year_count,
)


class TestWeekKeyOf:
    """Tests for computing the week key of a date."""

    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2025, 1, 27), "2025-05"),
            (date(2025, 2, 2), "2025-05"),
            (date(2024, 12, 30), "2025-01"),
            (date(2021, 1, 3), "2020-53"),
            (date(2025, 12, 31), "2026-01"),
            (date(2026, 12, 31), "2026-53"),
        ],
    )
    def test_known_dates(self, day, expected):
        """Test week keys around year boundaries."""
        assert week_key_of(day) == expected

    def test_accepts_datetime(self):
        """Test that the date part of a datetime is used."""
        assert week_key_of(datetime(2025, 1, 27, 23, 59)) == "2025-05"

    def test_matches_isocalendar(self):
        """Test agreement with the standard library over several years."""
        day = date(2019, 12, 1)
        while day < date(2027, 2, 1):
            iso = day.isocalendar()
            assert week_key_of(day) == f"{iso[0]:04d}-{iso[1]:02d}"
            day += timedelta(days=1)

    def test_keys_order_chronologically(self):
        """Test that string order matches date order."""
        keys = [week_key_of(date(2024, 12, 23) + timedelta(weeks=i)) for i in range(4)]
        assert keys == sorted(keys)
        assert keys == ["2024-52", "2025-01", "2025-02", "2025-03"]


class TestParseWeekKey:
    """Tests for week key validation and parsing."""

    def test_parse_valid(self):
        """Test parsing a well-formed key."""
        parsed = parse_week_key("2025-05")
        assert parsed.year == 2025
        assert parsed.week_number == 5

    @pytest.mark.parametrize("key", ["2025-5", "2025-00", "2025-54", "25-05", "2025W05", "", "2025-05 "])
    def test_invalid_keys_raise(self, key):
        """Test that malformed keys are rejected."""
        assert not is_valid_week_key(key)
        with pytest.raises(WeekKeyFormatError):
            parse_week_key(key)

    def test_non_string_is_invalid(self):
        """Test that a non-string is never a week key."""
        assert not is_valid_week_key(202505)

    def test_week_53_is_valid(self):
        """Test that week 53 passes validation."""
        assert is_valid_week_key("2020-53")

    @pytest.mark.parametrize("key", ["2021-53", "2022-53", "2025-53"])
    def test_week_53_of_short_year_is_invalid(self, key):
        """Test that week 53 is rejected in years with 52 weeks."""
        assert not is_valid_week_key(key)
        with pytest.raises(WeekKeyFormatError):
            week_bounds(key)


class TestWeekBounds:
    """Tests for week start and end dates."""

    def test_first_week_starts_in_previous_year(self):
        """Test that week 1 of 2025 starts on Monday Dec 30 2024."""
        assert week_start(1, 2025) == date(2024, 12, 30)

    def test_week_start_is_monday(self):
        """Test start dates fall on Mondays."""
        start = week_start(5, 2025)
        assert start == date(2025, 1, 27)
        assert start.weekday() == 0

    def test_week_end_is_sunday(self):
        """Test that the end is six days after the start."""
        assert week_end(date(2025, 1, 27)) == date(2025, 2, 2)

    def test_bounds_round_trip(self):
        """Test that the start of a week maps back to the same key."""
        for key in ["2020-53", "2025-01", "2025-52", "2026-53"]:
            start, end = week_bounds(key)
            assert week_key_of(start) == key
            assert week_key_of(end) == key


class TestWeeksInYear:
    """Tests for the year timeline."""

    @pytest.mark.parametrize("year,count", [(2025, 52), (2020, 53), (2026, 53), (2021, 52)])
    def test_week_count(self, year, count):
        """Test 52 and 53 week years."""
        assert weeks_in_year_count(year) == count
        assert len(weeks_in_year(year, [], today=date(2025, 1, 27))) == count

    def test_flags_relative_to_today(self):
        """Test current, past and future flags."""
        weeks = weeks_in_year(2025, [], today=date(2025, 1, 27))

        assert weeks[4].week_key == "2025-05"
        assert weeks[4].is_current
        assert all(w.is_past for w in weeks[:4])
        assert all(w.is_future for w in weeks[5:])
        assert sum(w.is_current for w in weeks) == 1

    def test_notes_attached_by_week_key(self):
        """Test that notes land on their week."""
        note = Note(week_key="2025-03", body="First snow", id="n1")
        weeks = weeks_in_year(2025, [note], today=date(2025, 1, 27))

        assert weeks[2].has_note
        assert weeks[2].note is note
        assert sum(w.has_note for w in weeks) == 1

    def test_dates_are_contiguous(self):
        """Test that each week starts the day after the previous one ends."""
        weeks = weeks_in_year(2026, [], today=date(2025, 1, 27))
        for prev, nxt in zip(weeks, weeks[1:]):
            assert nxt.start_date == prev.end_date + timedelta(days=1)
        assert all(w.is_future for w in weeks)


class TestFormatting:
    """Tests for date range formatting."""

    def test_same_month(self):
        """Test a range within one month."""
        assert format_date_range(date(2025, 1, 6), date(2025, 1, 12)) == "Jan 6 – Jan 12"

    def test_across_months(self):
        """Test a range spanning two months."""
        assert format_date_range(date(2025, 1, 27), date(2025, 2, 2)) == "Jan 27 – Feb 2"


class TestTimezoneWeekKey:
    """Tests for week keys in an account timezone."""

    def test_new_york_is_still_previous_week(self):
        """Test Monday 03:00 UTC is Sunday evening in New York."""
        now = datetime(2025, 1, 27, 3, 0, tzinfo=timezone.utc)
        assert week_key_for_timezone("America/New_York", now) == "2025-04"
        assert week_key_for_timezone("UTC", now) == "2025-05"

    def test_unknown_timezone_falls_back_to_utc(self):
        """Test that an unknown zone does not raise."""
        now = datetime(2025, 1, 27, 3, 0, tzinfo=timezone.utc)
        assert week_key_for_timezone("Mars/Olympus_Mons", now) == "2025-05"
