"""Unit tests for note search and filters."""

import pytest

from emptyjar.models.note import MomentType, Note
from emptyjar.services.search import NoteFilters, all_tags, filter_notes


@pytest.fixture
def notes():
    return [
        Note(week_key="2025-01", body="New year walk", mood=4, tags=["outdoors"], moment_type="health"),
        Note(week_key="2025-02", body="Shipped the release", mood=5, title="Launch", moment_type="work"),
        Note(week_key="2025-03", body="Dinner with Sam", mood=3, tags=["friends", "food"], moment_type="people"),
    ]


class TestFilterNotes:
    """Tests for filtering notes."""

    def test_no_filters_newest_first(self, notes):
        """Test that empty filters return everything, newest week first."""
        result = filter_notes(notes, NoteFilters())
        assert [n.week_key for n in result] == ["2025-03", "2025-02", "2025-01"]

    def test_search_matches_title_body_tags(self, notes):
        """Test case-insensitive text search."""
        assert [n.week_key for n in filter_notes(notes, NoteFilters(search_query="LAUNCH"))] == ["2025-02"]
        assert [n.week_key for n in filter_notes(notes, NoteFilters(search_query="walk"))] == ["2025-01"]
        assert [n.week_key for n in filter_notes(notes, NoteFilters(search_query="food"))] == ["2025-03"]

    def test_mood_filter(self, notes):
        """Test filtering by mood."""
        result = filter_notes(notes, NoteFilters(moods=[4, 5]))
        assert [n.week_key for n in result] == ["2025-02", "2025-01"]

    def test_moment_type_filter(self, notes):
        """Test filtering by moment type, given as values."""
        result = filter_notes(notes, NoteFilters(moment_types=["people"]))
        assert [n.moment_type for n in result] == [MomentType.PEOPLE]

    def test_tag_filter_matches_any(self, notes):
        """Test that any listed tag matches."""
        result = filter_notes(notes, NoteFilters(tags=["outdoors", "friends"]))
        assert [n.week_key for n in result] == ["2025-03", "2025-01"]

    def test_criteria_combine(self, notes):
        """Test that all criteria must match."""
        assert filter_notes(notes, NoteFilters(search_query="dinner", moods=[5])) == []

    def test_all_tags(self, notes):
        """Test the sorted tag list."""
        assert all_tags(notes) == ["food", "friends", "outdoors"]
