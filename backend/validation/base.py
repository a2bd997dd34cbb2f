"""Checks shared by the per-record validators.

Every check records a finding and, when the validator's auto-repair policy
allows it, fixes the record in place. Checks never raise for bad data.
"""

from typing import Any

from gedcom_model import Event
from .findings import Finding, ProblemCode, Severity


def is_blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


class RecordValidator:
    """Base class for the validators of one kind of record."""

    def __init__(self, validator):
        self.validator = validator
        self.gedcom = validator.gedcom

    def validate(self) -> None:
        raise NotImplementedError

    def finding(self, item: Any, severity: Severity, problem: ProblemCode, field: str | None = None) -> Finding:
        return self.validator.new_finding(item, severity, problem, field)

    def repair(self, finding: Finding, record: Any, fix) -> bool:
        return self.validator.repair(finding, record, fix)

    # ------------------------------------------------------------------
    # Scalar values
    # ------------------------------------------------------------------

    def check_required_value(self, record: Any, field: str, default: str | None = None,
                             severity: Severity = Severity.ERROR) -> None:
        """A value the format requires. Repaired with ``default`` when there is one."""
        if not is_blank(getattr(record, field)):
            return
        finding = self.finding(record, severity, ProblemCode.MISSING_REQUIRED_VALUE, field)
        if default is not None:
            self.repair(finding, record, lambda: setattr(record, field, default))

    def check_optional_value(self, record: Any, field: str, severity: Severity = Severity.INFO) -> None:
        """An optional value that is present but blank is cleared."""
        value = getattr(record, field)
        if value is not None and value.strip() == "":
            finding = self.finding(record, severity, ProblemCode.ILLEGAL_VALUE, field)
            self.repair(finding, record, lambda: setattr(record, field, None))

    def check_optional_values(self, record: Any, *fields: str) -> None:
        for field in fields:
            self.check_optional_value(record, field)

    def check_digits(self, record: Any, field: str) -> None:
        value = getattr(record, field)
        if value is not None and value.strip() and not value.strip().isdigit():
            self.finding(record, Severity.WARNING, ProblemCode.ILLEGAL_VALUE, field)

    # ------------------------------------------------------------------
    # Lists of strings
    # ------------------------------------------------------------------

    def check_required_list(self, record: Any, field: str, allow_duplicates: bool = False) -> None:
        """Every entry of the list must be non-blank."""
        values = getattr(record, field)
        if any(is_blank(v) for v in values):
            finding = self.finding(record, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, field)
            self.repair(finding, record, lambda: setattr(record, field, [v for v in values if not is_blank(v)]))
        if not allow_duplicates:
            self.check_duplicates(record, field)

    def check_duplicates(self, record: Any, field: str) -> None:
        values = getattr(record, field)
        if len(set(values)) != len(values):
            finding = self.finding(record, Severity.WARNING, ProblemCode.DUPLICATE_VALUE, field)
            self.repair(finding, record, lambda: setattr(record, field, list(dict.fromkeys(values))))

    # ------------------------------------------------------------------
    # Cross-references
    # ------------------------------------------------------------------

    def check_record_key(self, key: str, record: Any) -> None:
        """A top-level record must be stored under its own xref."""
        if record.xref != key:
            finding = self.finding(record, Severity.ERROR, ProblemCode.XREF_MISMATCH, "xref")
            self.repair(finding, record, lambda: setattr(record, "xref", key))

    def check_xref(self, record: Any, field: str, records: dict) -> None:
        xref = getattr(record, field)
        if xref is not None and xref not in records:
            finding = self.finding(record, Severity.ERROR, ProblemCode.CROSS_REFERENCE_NOT_FOUND, field)
            self.repair(finding, record, lambda: setattr(record, field, None))

    def check_xref_list(self, record: Any, field: str, records: dict) -> None:
        xrefs = getattr(record, field)
        if any(x not in records for x in xrefs):
            finding = self.finding(record, Severity.ERROR, ProblemCode.CROSS_REFERENCE_NOT_FOUND, field)
            self.repair(finding, record, lambda: setattr(record, field, [x for x in xrefs if x in records]))
        self.check_duplicates(record, field)

    def check_links(self, record: Any, field: str, link_field: str, records: dict) -> list:
        """Check link structures whose ``link_field`` must hold a resolvable xref."""
        return self.check_dangling(record, field, lambda link: getattr(link, link_field) not in records)

    def check_dangling(self, record: Any, field: str, is_dangling) -> list:
        """
        Record one finding for the entries of a list that point at nothing.
        The dangling entries become related items of the finding and are
        removed on repair. Returns the entries that resolve.
        """
        return self.drop_entries(record, field, is_dangling, ProblemCode.CROSS_REFERENCE_NOT_FOUND)

    def check_complete(self, record: Any, field: str, is_incomplete) -> list:
        """Like check_dangling, for entries missing a value they cannot be written without."""
        return self.drop_entries(record, field, is_incomplete, ProblemCode.MISSING_REQUIRED_VALUE)

    def drop_entries(self, record: Any, field: str, is_bad, problem: ProblemCode) -> list:
        items = getattr(record, field)
        bad = [item for item in items if is_bad(item)]
        if not bad:
            return items
        finding = self.finding(record, Severity.ERROR, problem, field)
        for item in bad:
            finding.add_related_item(item)
        kept = [item for item in items if not is_bad(item)]
        self.repair(finding, record, lambda: setattr(record, field, kept))
        return kept

    # ------------------------------------------------------------------
    # Shared structures
    # ------------------------------------------------------------------

    def check_address(self, record: Any, field: str = "address") -> None:
        address = getattr(record, field)
        if address is None:
            return
        self.check_optional_values(address, "addr1", "addr2", "city", "state_province", "postal_code", "country")

    def check_change_date(self, record: Any) -> None:
        change_date = record.change_date
        if change_date is None:
            return
        if is_blank(change_date.date):
            finding = self.finding(change_date, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "date")
            if self.repair(finding, record, lambda: setattr(record, "change_date", None)):
                return
        self.check_optional_value(change_date, "time")
        self.check_notes(change_date)

    def check_user_references(self, record: Any) -> None:
        for ref in self.check_complete(record, "user_references", lambda r: is_blank(r.reference_num)):
            self.check_optional_value(ref, "type")

    def check_notes(self, record: Any, field: str = "notes") -> None:
        for note in self.check_dangling(record, field, lambda n: n.xref and n.xref not in self.gedcom.notes):
            if not note.xref:
                self.check_citations(note)

    def check_citations(self, record: Any, field: str = "citations") -> None:
        sources = self.gedcom.sources
        remaining = self.check_dangling(
            record, field, lambda c: c.source_xref is not None and c.source_xref not in sources)
        for citation in remaining:
            self.check_optional_values(citation, "where_in_source", "certainty")
            self.check_multimedia_links(citation)
            self.check_notes(citation)

    def check_multimedia_links(self, record: Any, field: str = "multimedia") -> None:
        objects = self.gedcom.multimedia
        remaining = self.check_dangling(record, field, lambda m: m.xref and m.xref not in objects)
        # Inline links need both FORM and FILE
        remaining = self.check_complete(
            record, field, lambda m: not m.xref and (is_blank(m.format) or is_blank(m.file_reference)))
        for m in remaining:
            if m.xref:
                continue
            self.check_optional_value(m, "title")
            self.check_notes(m)

    def check_events(self, record: Any, field: str) -> None:
        for event in self.check_complete(record, field, lambda e: is_blank(e.tag)):
            self.check_event(event)

    def check_event(self, event: Event) -> None:
        self.check_optional_values(event, "type", "date", "age", "agency", "cause")
        # Written as required values whenever they are set
        self.check_optional_value(event, "husband_age", Severity.ERROR)
        self.check_optional_value(event, "wife_age", Severity.ERROR)
        if event.place is not None:
            self.check_optional_value(event.place, "form")
            self.check_citations(event.place)
            self.check_notes(event.place)
        self.check_address(event)
        self.check_duplicates(event, "phone_numbers")
        self.check_citations(event)
        self.check_multimedia_links(event)
        self.check_notes(event)
