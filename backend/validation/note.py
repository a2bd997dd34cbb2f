"""Validation of NOTE records."""

from gedcom_model import Note
from .base import RecordValidator


class NoteValidator(RecordValidator):

    def __init__(self, validator, key: str, note: Note):
        super().__init__(validator)
        self.key = key
        self.note = note

    def validate(self) -> None:
        note = self.note
        self.check_record_key(self.key, note)
        self.check_citations(note)
        self.check_user_references(note)
        self.check_optional_value(note, "rec_id_number")
        self.check_change_date(note)
