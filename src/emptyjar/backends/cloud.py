"""Account backend on the cloud store."""

from typing import Optional

from emptyjar.backends.base import Backend, BackendKind
from emptyjar.backends.cloud_client import CloudClient
from emptyjar.models.app_settings import AppSettings
from emptyjar.models.note import Note, format_timestamp


class CloudBackend(Backend):
    """Remote storage bound to one account.

    Notes are addressed by ``(user_id, week_key)``, so a note created while
    offline under a locally-tagged id can still be updated or deleted once
    the queue is replayed.
    """

    kind = BackendKind.CLOUD

    def __init__(self, client: CloudClient, user_id: str):
        self.client = client
        self.user_id = user_id

    def load_notes(self) -> list[Note]:
        return [Note.from_row(row) for row in self.client.fetch_notes(self.user_id)]

    def insert_note(self, note: Note) -> Note:
        row = self.client.insert_note(note.to_row(self.user_id))
        return Note.from_row({**note.to_row(self.user_id), **row}) if "id" in row else note

    def update_note(self, note: Note) -> Note:
        changes = {
            "title": note.title,
            "body": note.body,
            "mood": note.mood,
            "moment_type": note.moment_type.value,
            "tags": list(note.tags),
            "updated_at": format_timestamp(note.updated_at),
        }
        row = self.client.update_note(self.user_id, note.week_key, changes)
        if "id" in row and "week_key" in row:
            return Note.from_row({**note.to_row(self.user_id), **row})
        return note

    def delete_note(self, note: Note) -> None:
        self.client.delete_note(self.user_id, note.week_key)

    def load_settings(self) -> Optional[AppSettings]:
        row = self.client.fetch_settings(self.user_id)
        return AppSettings.from_row(row) if row else None

    def save_settings(self, settings: AppSettings) -> AppSettings:
        row = self.client.upsert_settings(settings.to_row(self.user_id))
        return AppSettings.from_row(row)

    def note_exists(self, week_key: str) -> bool:
        return self.client.note_exists(self.user_id, week_key)
