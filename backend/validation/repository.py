"""Validation of REPO records."""

from gedcom_model import Repository
from .base import RecordValidator


class RepositoryValidator(RecordValidator):

    def __init__(self, validator, key: str, repository: Repository):
        super().__init__(validator)
        self.key = key
        self.repository = repository

    def validate(self) -> None:
        repository = self.repository
        self.check_record_key(self.key, repository)
        self.check_optional_values(repository, "name", "rec_id_number", "reg_file_number")
        self.check_address(repository)
        self.check_notes(repository)
        self.check_user_references(repository)
        self.check_duplicates(repository, "phone_numbers")
        self.check_change_date(repository)
