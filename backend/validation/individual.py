"""Validation of INDI records."""

from gedcom_model import VALID_SEX_VALUES, Individual
from .base import RecordValidator, is_blank
from .findings import ProblemCode, Severity


class IndividualValidator(RecordValidator):

    def __init__(self, validator, key: str, individual: Individual):
        super().__init__(validator)
        self.key = key
        self.individual = individual

    def validate(self) -> None:
        individual = self.individual
        gedcom = self.gedcom
        self.check_record_key(self.key, individual)
        self.check_optional_value(individual, "restriction")

        for name in individual.names:
            self.check_optional_values(name, "prefix", "given_name", "nickname", "surname_prefix", "surname",
                                       "suffix")
            self.check_citations(name)
            self.check_notes(name)

        self._check_sex()
        self.check_events(individual, "events")
        self.check_events(individual, "attributes")

        for link in self.check_links(individual, "child_families", "family_xref", gedcom.families):
            self.check_optional_value(link, "pedigree")
            self.check_notes(link)
        for link in self.check_links(individual, "spouse_families", "family_xref", gedcom.families):
            self.check_notes(link)

        self.check_xref_list(individual, "submitter_xrefs", gedcom.submitters)
        self._check_associations()
        self.check_xref_list(individual, "alias_xrefs", gedcom.individuals)
        self.check_xref_list(individual, "ancestor_interest_xrefs", gedcom.submitters)
        self.check_xref_list(individual, "descendant_interest_xrefs", gedcom.submitters)

        self.check_citations(individual)
        self.check_multimedia_links(individual)
        self.check_notes(individual)
        self.check_optional_values(individual, "perm_record_file_number", "ancestral_file_number",
                                   "rec_id_number")
        self.check_user_references(individual)
        self.check_change_date(individual)

    def _check_sex(self) -> None:
        individual = self.individual
        if individual.sex is None or individual.sex in VALID_SEX_VALUES:
            return
        finding = self.finding(individual, Severity.WARNING, ProblemCode.ILLEGAL_VALUE, "sex")
        self.repair(finding, individual, lambda: setattr(individual, "sex", "U"))

    def _check_associations(self) -> None:
        individual = self.individual
        self.check_links(individual, "associations", "associated_xref", self.gedcom.individuals)
        for association in self.check_complete(individual, "associations", lambda a: is_blank(a.relationship)):
            # ASSO points at an individual unless TYPE says otherwise
            self.check_required_value(association, "type", "INDI")
            self.check_notes(association)
            self.check_citations(association)
