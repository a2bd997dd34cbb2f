"""Validation of SUBM records."""

from gedcom_model import Submitter
from .base import RecordValidator
from .findings import Severity


class SubmitterValidator(RecordValidator):

    def __init__(self, validator, key: str, submitter: Submitter):
        super().__init__(validator)
        self.key = key
        self.submitter = submitter

    def validate(self) -> None:
        submitter = self.submitter
        self.check_record_key(self.key, submitter)
        # NAME is required by the grammar but is written even when empty
        self.check_required_value(submitter, "name", "UNSPECIFIED", severity=Severity.WARNING)
        self.check_address(submitter)
        self.check_multimedia_links(submitter)
        self.check_required_list(submitter, "language_pref")
        self.check_required_list(submitter, "phone_numbers")
        self.check_optional_values(submitter, "reg_file_number", "rec_id_number")
        self.check_change_date(submitter)
