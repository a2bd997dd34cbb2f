"""Validation of the HEAD record."""

from gedcom_model import CharacterSet, GedcomVersion, Header, SourceSystem
from .base import RecordValidator
from .findings import ProblemCode, Severity


class HeaderValidator(RecordValidator):
    """Checks the header: the mandatory source system, GEDC and CHAR blocks, and its links."""

    def validate(self) -> None:
        gedcom = self.gedcom
        if gedcom.header is None:
            finding = self.finding(gedcom, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "header")
            if not self.repair(finding, gedcom, lambda: setattr(gedcom, "header", Header())):
                return
        header = gedcom.header

        self._check_source_system(header)
        self.check_optional_values(header, "destination_system", "date", "time", "file_name", "copyright_data",
                                   "language", "place_hierarchy")
        if header.time is not None and header.date is None:
            # TIME is only written under DATE
            finding = self.finding(header, Severity.WARNING, ProblemCode.ILLEGAL_VALUE, "time")
            self.repair(finding, header, lambda: setattr(header, "time", None))

        self.check_xref(header, "submitter_xref", gedcom.submitters)
        submission = gedcom.submission
        if header.submission_xref is not None and (submission is None or submission.xref != header.submission_xref):
            finding = self.finding(header, Severity.ERROR, ProblemCode.CROSS_REFERENCE_NOT_FOUND, "submission_xref")
            if submission is not None:
                finding.add_related_item(submission)
            self.repair(finding, header, lambda: setattr(header, "submission_xref", None))

        if header.gedcom_version is None:
            finding = self.finding(header, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "gedcom_version")
            self.repair(finding, header, lambda: setattr(header, "gedcom_version", GedcomVersion()))
        else:
            self.check_required_value(header.gedcom_version, "version_number", "5.5")
            self.check_required_value(header.gedcom_version, "gedcom_form", "LINEAGE-LINKED")

        if header.character_set is None:
            finding = self.finding(header, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "character_set")
            self.repair(finding, header, lambda: setattr(header, "character_set", CharacterSet()))
        else:
            self.check_required_value(header.character_set, "character_set_name", "ANSEL")
            self.check_optional_value(header.character_set, "version_num")

    def _check_source_system(self, header: Header) -> None:
        if header.source_system is None:
            finding = self.finding(header, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "source_system")
            if not self.repair(finding, header, lambda: setattr(header, "source_system", SourceSystem())):
                return
        source_system = header.source_system
        self.check_required_value(source_system, "system_id", "UNSPECIFIED")
        self.check_optional_values(source_system, "version_num", "product_name")

        corporation = source_system.corporation
        if corporation is not None:
            self.check_address(corporation)
            self.check_duplicates(corporation, "phone_numbers")

        source_data = source_system.source_data
        if source_data is not None:
            self.check_optional_values(source_data, "publish_date", "copyright")
