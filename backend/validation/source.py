"""Validation of SOUR records and their repository citations."""

from gedcom_model import Source
from .base import RecordValidator, is_blank
from .findings import ProblemCode, Severity


class SourceValidator(RecordValidator):

    def __init__(self, validator, key: str, source: Source):
        super().__init__(validator)
        self.key = key
        self.source = source

    def validate(self) -> None:
        source = self.source
        self.check_record_key(self.key, source)

        if source.data is not None:
            data = source.data
            for event in data.events_recorded:
                self.check_optional_values(event, "date_period", "jurisdiction")
            self.check_optional_value(data, "resp_agency")
            self.check_notes(data)

        self.check_optional_values(source, "source_filed_by", "rec_id_number", "reg_file_number")
        self._check_repository_citation()
        self.check_multimedia_links(source)
        self.check_notes(source)
        self.check_user_references(source)
        self.check_change_date(source)

    def _check_repository_citation(self) -> None:
        source = self.source
        citation = source.repository_citation
        if citation is None:
            return
        if citation.repository_xref not in self.gedcom.repositories:
            # A citation that names no repository, or an unknown one, cannot be written
            finding = self.finding(source, Severity.ERROR, ProblemCode.CROSS_REFERENCE_NOT_FOUND,
                                   "repository_citation")
            finding.add_related_item(citation)
            if self.repair(finding, source, lambda: setattr(source, "repository_citation", None)):
                return

        call_numbers = citation.call_numbers
        if any(is_blank(cn.call_number) for cn in call_numbers):
            finding = self.finding(citation, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "call_numbers")
            self.repair(finding, citation, lambda: setattr(
                citation, "call_numbers", [cn for cn in call_numbers if not is_blank(cn.call_number)]))
        for call_number in citation.call_numbers:
            self.check_optional_value(call_number, "media_type")
        self.check_notes(citation)
