"""Validation of OBJE records."""

from gedcom_model import Multimedia
from .base import RecordValidator


class MultimediaValidator(RecordValidator):

    def __init__(self, validator, key: str, multimedia: Multimedia):
        super().__init__(validator)
        self.key = key
        self.multimedia = multimedia

    def validate(self) -> None:
        m = self.multimedia
        self.check_record_key(self.key, m)
        self.check_required_value(m, "format")
        self.check_optional_values(m, "title", "rec_id_number")
        self.check_notes(m)
        # Blob lines may legitimately repeat
        self.check_required_list(m, "blob", allow_duplicates=True)
        self.check_xref(m, "continued_object_xref", self.gedcom.multimedia)
        self.check_user_references(m)
        self.check_change_date(m)
