"""Search and filtering over notes."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from emptyjar.models.note import MomentType, Note


@dataclass
class NoteFilters:
    """Criteria for narrowing a list of notes. Empty criteria match everything."""

    search_query: Optional[str] = None
    moods: list[int] = field(default_factory=list)
    moment_types: list[MomentType] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.moment_types = [MomentType(m) for m in self.moment_types]


def _matches_query(note: Note, query: str) -> bool:
    query = query.lower()
    if note.title and query in note.title.lower():
        return True
    if query in note.body.lower():
        return True
    return any(query in tag.lower() for tag in note.tags)


def filter_notes(notes: Iterable[Note], filters: NoteFilters) -> list[Note]:
    """Notes matching all given criteria, newest week first."""
    result = []
    for note in notes:
        if filters.search_query and not _matches_query(note, filters.search_query):
            continue
        if filters.moods and note.mood not in filters.moods:
            continue
        if filters.moment_types and note.moment_type not in filters.moment_types:
            continue
        if filters.tags and not any(tag in note.tags for tag in filters.tags):
            continue
        result.append(note)
    return sorted(result, key=lambda n: n.week_key, reverse=True)


def all_tags(notes: Iterable[Note]) -> list[str]:
    """Every tag used across the notes, sorted."""
    return sorted({tag for note in notes for tag in note.tags})
