"""Validation of FAM records."""

from gedcom_model import Family
from .base import RecordValidator


class FamilyValidator(RecordValidator):

    def __init__(self, validator, key: str, family: Family):
        super().__init__(validator)
        self.key = key
        self.family = family

    def validate(self) -> None:
        family = self.family
        individuals = self.gedcom.individuals
        self.check_record_key(self.key, family)
        self.check_events(family, "events")
        self.check_xref(family, "husband_xref", individuals)
        self.check_xref(family, "wife_xref", individuals)
        self.check_xref_list(family, "children_xrefs", individuals)
        self.check_optional_value(family, "num_children")
        self.check_digits(family, "num_children")
        self.check_xref_list(family, "submitter_xrefs", self.gedcom.submitters)
        self.check_citations(family)
        self.check_multimedia_links(family)
        self.check_notes(family)
        self.check_user_references(family)
        self.check_optional_value(family, "rec_id_number")
        self.check_change_date(family)
