"""GEDCOM 5.5 writer: turns a Gedcom record graph into GEDCOM text.

Every record kind is written by a fixed sequence of emitter calls that follows
the field order of the 5.5 grammar. A value the grammar requires that turns
out to be missing raises GedcomWriterError and the whole document is
abandoned; no partial document is ever returned or written.
"""

import logging
import os
import tempfile

from config import get_settings
from gedcom_errors import GedcomValidationError, GedcomWriterError
from gedcom_model import (
    Address,
    ChangeDate,
    Citation,
    Event,
    Gedcom,
    Header,
    Multimedia,
    Note,
    Place,
    RepositoryCitation,
    SourceSystem,
    UserReference,
)

logger = logging.getLogger("gedline.writer")


def _escape_text(lines: list[str]) -> list[str]:
    """Double a leading @ so inline text is not read back as a pointer."""
    if lines and lines[0].startswith("@"):
        return ["@" + lines[0]] + lines[1:]
    return lines


# ============================================================================
# Line Emitter
# ============================================================================

class LineEmitter:
    """Collects GEDCOM lines of the form ``<level> [<xref>] <tag> [<value>]``."""

    def __init__(self):
        self.lines: list[str] = []

    def _append(self, level: int, tag: str, value: str | None = None, xref: str | None = None) -> None:
        if level < 0:
            raise GedcomWriterError(f"Negative level {level} for tag {tag}")
        if value and ("\n" in value or "\r" in value):
            raise GedcomWriterError(
                f"Value for tag {tag} at level {level} contains a line break; "
                "multi-line values must be given as a list of lines"
            )
        line = str(level)
        if xref:
            line += f" {xref}"
        line += f" {tag}"
        if value:
            line += f" {value}"
        self.lines.append(line)

    def emit_tag(self, level: int, tag: str, xref: str | None = None) -> None:
        """Write a tag with no value."""
        self._append(level, tag, xref=xref)

    def emit_if_present(self, level: int, tag: str, value: str | None, xref: str | None = None) -> None:
        """Write the line only when there is a value; otherwise write nothing."""
        if value is not None:
            self._append(level, tag, value, xref)

    def emit_optional(self, level: int, tag: str, value: str | None, xref: str | None = None) -> None:
        """Write the tag, with its value when there is one."""
        self._append(level, tag, value, xref)

    def emit_required(self, level: int, tag: str, value: str | None, xref: str | None = None) -> None:
        """Write the tag and value, or fail if the value is null or blank."""
        if value is None or value == "":
            raise GedcomWriterError(f"Required value for tag {tag} at level {level} was null or blank")
        self._append(level, tag, value, xref)

    def emit_lines_of_text(self, level: int, tag: str, lines: list[str], xref: str | None = None) -> None:
        """
        Write a multi-line value: the first line under ``tag`` at ``level``,
        every following line as CONT one level deeper.

        Blank continuation lines are written as bare CONT lines, never dropped.
        """
        for line_num, text in enumerate(lines):
            if line_num == 0:
                self.emit_if_present(level, tag, text, xref)
            else:
                self._append(level + 1, "CONT", text or "")


# ============================================================================
# Record Encoders
# ============================================================================

class GedcomWriter:
    """
    Writes a Gedcom record graph as GEDCOM 5.5 text.

    Unless validation is suppressed, the graph is validated first and any
    ERROR finding stops the write with GedcomValidationError.
    """

    def __init__(
        self,
        gedcom: Gedcom,
        validation_suppressed: bool | None = None,
        line_terminator: str | None = None,
    ):
        if gedcom is None:
            raise ValueError("gedcom is a required argument")
        settings = get_settings()
        self.gedcom = gedcom
        if validation_suppressed is None:
            validation_suppressed = not settings.validate_before_write
        self.validation_suppressed = validation_suppressed
        self.line_terminator = line_terminator or settings.line_terminator
        # Written to HEAD.FILE in place of header.file_name, without touching the graph
        self.file_name: str | None = None
        self.out = LineEmitter()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def encode(self) -> list[str]:
        """Encode the whole document and return its lines."""
        if not self.validation_suppressed:
            self._validate()
        self.out = LineEmitter()
        self._emit_header()
        self._emit_submission_record()
        self._emit_records()
        self._emit_trailer()
        logger.info(f"Encoded GEDCOM document with {len(self.out.lines)} lines")
        return self.out.lines

    def write_to_string(self) -> str:
        lines = self.encode()
        return self.line_terminator.join(lines) + self.line_terminator

    def write(self, file_path: str) -> None:
        """
        Write the document to ``file_path``. HEAD.FILE is set to the file's
        base name. The file is only replaced once encoding has succeeded.
        """
        self.file_name = os.path.basename(file_path)
        content = self.write_to_string()

        directory = os.path.dirname(os.path.abspath(file_path))
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w", suffix=".ged", dir=directory, delete=False, encoding="utf-8", newline=""
            ) as f:
                temp_path = f.name
                f.write(content)
            os.replace(temp_path, file_path)
        except BaseException:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        logger.info(f"Wrote GEDCOM file {file_path}")

    def _validate(self) -> None:
        from validation import Severity, Validator

        validator = Validator(self.gedcom)
        validator.validate()
        blocking = [f for f in validator.results if f.severity == Severity.ERROR]
        if blocking:
            logger.warning(f"Refusing to write GEDCOM with {len(blocking)} error finding(s)")
            raise GedcomValidationError(
                f"GEDCOM data has {len(blocking)} validation error(s) and cannot be written",
                blocking,
            )

    # ------------------------------------------------------------------
    # Shared structures
    # ------------------------------------------------------------------

    def _record_xref(self, record, tag: str) -> str:
        if not record.xref:
            raise GedcomWriterError(f"{tag} record has no cross-reference id")
        return record.xref

    def _emit_address(self, level: int, address: Address | None) -> None:
        if address is None:
            return
        out = self.out
        out.emit_lines_of_text(level, "ADDR", address.lines or [""])
        out.emit_if_present(level + 1, "ADR1", address.addr1)
        out.emit_if_present(level + 1, "ADR2", address.addr2)
        out.emit_if_present(level + 1, "CITY", address.city)
        out.emit_if_present(level + 1, "STAE", address.state_province)
        out.emit_if_present(level + 1, "POST", address.postal_code)
        out.emit_if_present(level + 1, "CTRY", address.country)

    def _emit_phone_numbers(self, level: int, phone_numbers: list[str]) -> None:
        for phone in phone_numbers:
            self.out.emit_if_present(level, "PHON", phone)

    def _emit_change_date(self, level: int, change_date: ChangeDate | None) -> None:
        if change_date is None:
            return
        self.out.emit_tag(level, "CHAN")
        self.out.emit_required(level + 1, "DATE", change_date.date)
        self.out.emit_if_present(level + 2, "TIME", change_date.time)
        self._emit_notes(level + 1, change_date.notes)

    def _emit_user_references(self, level: int, user_references: list[UserReference]) -> None:
        for ref in user_references:
            self.out.emit_required(level, "REFN", ref.reference_num)
            self.out.emit_if_present(level + 1, "TYPE", ref.type)

    def _emit_note(self, level: int, note: Note) -> None:
        if note.xref:
            # Pointer to a NOTE record
            self.out.emit_required(level, "NOTE", note.xref)
            return
        self.out.emit_lines_of_text(level, "NOTE", _escape_text(note.lines) or [""])
        self._emit_citations(level + 1, note.citations)

    def _emit_notes(self, level: int, notes: list[Note]) -> None:
        for note in notes:
            self._emit_note(level, note)

    def _emit_multimedia_links(self, level: int, multimedia: list[Multimedia]) -> None:
        out = self.out
        for m in multimedia:
            if m.xref:
                out.emit_required(level, "OBJE", m.xref)
            else:
                # Link to an external file
                out.emit_tag(level, "OBJE")
                out.emit_required(level + 1, "FORM", m.format)
                out.emit_if_present(level + 1, "TITL", m.title)
                out.emit_required(level + 1, "FILE", m.file_reference)
                self._emit_notes(level + 1, m.notes)

    def _check_reference(self, level: int, tag: str, xref: str | None, records: dict, kind: str) -> None:
        if xref is None or xref == "":
            raise GedcomWriterError(f"{kind} citation at level {level} has no {kind.lower()} reference ({tag})")
        if xref not in records:
            raise GedcomWriterError(f"{kind} citation at level {level} refers to unknown {kind.lower()} {xref}")

    def _emit_repository_citation(self, level: int, citation: RepositoryCitation | None) -> None:
        if citation is None:
            return
        self._check_reference(level, "REPO", citation.repository_xref, self.gedcom.repositories, "Repository")
        self.out.emit_required(level, "REPO", citation.repository_xref)
        self._emit_notes(level + 1, citation.notes)
        for call_number in citation.call_numbers:
            self.out.emit_required(level + 1, "CALN", call_number.call_number)
            self.out.emit_if_present(level + 2, "MEDI", call_number.media_type)

    def _emit_citation(self, level: int, citation: Citation) -> None:
        out = self.out
        if citation.source_xref is not None:
            self._check_reference(level, "SOUR", citation.source_xref, self.gedcom.sources, "Source")
            out.emit_required(level, "SOUR", citation.source_xref)
            out.emit_if_present(level + 1, "PAGE", citation.where_in_source)
            if citation.event_cited is not None:
                out.emit_if_present(level + 1, "EVEN", citation.event_cited)
                out.emit_if_present(level + 2, "ROLE", citation.role_in_event)
            for data in citation.data:
                out.emit_tag(level + 1, "DATA")
                out.emit_if_present(level + 2, "DATE", data.entry_date)
                for text in data.texts:
                    out.emit_lines_of_text(level + 2, "TEXT", text)
            out.emit_if_present(level + 1, "QUAY", citation.certainty)
            self._emit_multimedia_links(level + 1, citation.multimedia)
            self._emit_notes(level + 1, citation.notes)
        else:
            # Source described inline, no source record
            out.emit_lines_of_text(level, "SOUR", _escape_text(citation.description) or [""])
            for text in citation.texts:
                out.emit_lines_of_text(level + 1, "TEXT", text)
            self._emit_notes(level + 1, citation.notes)

    def _emit_citations(self, level: int, citations: list[Citation]) -> None:
        for citation in citations:
            self._emit_citation(level, citation)

    def _emit_place(self, level: int, place: Place | None) -> None:
        if place is None:
            return
        self.out.emit_optional(level, "PLAC", place.name)
        self.out.emit_if_present(level + 1, "FORM", place.form)
        self._emit_citations(level + 1, place.citations)
        self._emit_notes(level + 1, place.notes)

    def _emit_event(self, level: int, event: Event) -> None:
        out = self.out
        if not event.tag:
            raise GedcomWriterError(f"Event at level {level} has no tag")
        out.emit_optional(level, event.tag, event.value)
        out.emit_if_present(level + 1, "TYPE", event.type)
        out.emit_if_present(level + 1, "DATE", event.date)
        self._emit_place(level + 1, event.place)
        self._emit_address(level + 1, event.address)
        self._emit_phone_numbers(level + 1, event.phone_numbers)
        out.emit_if_present(level + 1, "AGE", event.age)
        out.emit_if_present(level + 1, "AGNC", event.agency)
        out.emit_if_present(level + 1, "CAUS", event.cause)
        if event.husband_age is not None:
            out.emit_tag(level + 1, "HUSB")
            out.emit_required(level + 2, "AGE", event.husband_age)
        if event.wife_age is not None:
            out.emit_tag(level + 1, "WIFE")
            out.emit_required(level + 2, "AGE", event.wife_age)
        self._emit_citations(level + 1, event.citations)
        self._emit_multimedia_links(level + 1, event.multimedia)
        self._emit_notes(level + 1, event.notes)

    # ------------------------------------------------------------------
    # Header and submission
    # ------------------------------------------------------------------

    def _emit_header(self) -> None:
        out = self.out
        header = self.gedcom.header
        if header is None:
            header = Header()
        out.emit_tag(0, "HEAD")
        self._emit_source_system(header.source_system)
        out.emit_if_present(1, "DEST", header.destination_system)
        if header.date is not None:
            out.emit_if_present(1, "DATE", header.date)
            out.emit_if_present(2, "TIME", header.time)
        if header.submitter_xref is not None:
            out.emit_required(1, "SUBM", header.submitter_xref)
        if header.submission_xref is not None:
            out.emit_required(1, "SUBN", header.submission_xref)
        out.emit_if_present(1, "FILE", self.file_name or header.file_name)
        out.emit_if_present(1, "COPR", header.copyright_data)

        version = header.gedcom_version
        out.emit_tag(1, "GEDC")
        out.emit_required(2, "VERS", version.version_number if version else None)
        out.emit_required(2, "FORM", version.gedcom_form if version else None)

        character_set = header.character_set
        out.emit_required(1, "CHAR", character_set.character_set_name if character_set else None)
        out.emit_if_present(2, "VERS", character_set.version_num if character_set else None)

        out.emit_if_present(1, "LANG", header.language)
        if header.place_hierarchy:
            out.emit_tag(1, "PLAC")
            out.emit_required(2, "FORM", header.place_hierarchy)
        out.emit_lines_of_text(1, "NOTE", header.notes)

    def _emit_source_system(self, source_system: SourceSystem | None) -> None:
        if source_system is None:
            return
        out = self.out
        out.emit_required(1, "SOUR", source_system.system_id)
        out.emit_if_present(2, "VERS", source_system.version_num)
        out.emit_if_present(2, "NAME", source_system.product_name)
        corporation = source_system.corporation
        if corporation is not None:
            out.emit_optional(2, "CORP", corporation.business_name)
            self._emit_address(3, corporation.address)
            self._emit_phone_numbers(3, corporation.phone_numbers)
        source_data = source_system.source_data
        if source_data is not None:
            out.emit_optional(2, "DATA", source_data.name)
            out.emit_if_present(3, "DATE", source_data.publish_date)
            out.emit_if_present(3, "COPR", source_data.copyright)

    def _emit_submission_record(self) -> None:
        submission = self.gedcom.submission
        if submission is None:
            return
        out = self.out
        out.emit_tag(0, "SUBN", xref=self._record_xref(submission, "SUBN"))
        if submission.submitter_xref is not None:
            out.emit_optional(1, "SUBM", submission.submitter_xref)
        out.emit_if_present(1, "FAMF", submission.name_of_family_file)
        out.emit_if_present(1, "TEMP", submission.temple_code)
        out.emit_if_present(1, "ANCE", submission.ancestors_count)
        out.emit_if_present(1, "DESC", submission.descendants_count)
        out.emit_if_present(1, "ORDI", submission.ordinance_process_flag)
        out.emit_if_present(1, "RIN", submission.rec_id_number)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _emit_records(self) -> None:
        self._emit_submitters()
        self._emit_individuals()
        self._emit_families()
        self._emit_multimedia()
        self._emit_note_records()
        self._emit_repositories()
        self._emit_sources()

    def _emit_submitters(self) -> None:
        out = self.out
        for submitter in self.gedcom.submitters.values():
            out.emit_tag(0, "SUBM", xref=self._record_xref(submitter, "SUBM"))
            out.emit_optional(1, "NAME", submitter.name)
            self._emit_address(1, submitter.address)
            self._emit_multimedia_links(1, submitter.multimedia)
            for language in submitter.language_pref:
                out.emit_required(1, "LANG", language)
            # Not part of the 5.5 SUBM grammar, but present in files in the wild
            for phone in submitter.phone_numbers:
                out.emit_required(1, "PHON", phone)
            out.emit_if_present(1, "RFN", submitter.reg_file_number)
            out.emit_if_present(1, "RIN", submitter.rec_id_number)
            self._emit_change_date(1, submitter.change_date)

    def _emit_individuals(self) -> None:
        out = self.out
        for individual in self.gedcom.individuals.values():
            out.emit_tag(0, "INDI", xref=self._record_xref(individual, "INDI"))
            out.emit_if_present(1, "RESN", individual.restriction)
            for name in individual.names:
                out.emit_optional(1, "NAME", name.basic)
                out.emit_if_present(2, "NPFX", name.prefix)
                out.emit_if_present(2, "GIVN", name.given_name)
                out.emit_if_present(2, "NICK", name.nickname)
                out.emit_if_present(2, "SPFX", name.surname_prefix)
                out.emit_if_present(2, "SURN", name.surname)
                out.emit_if_present(2, "NSFX", name.suffix)
                self._emit_citations(2, name.citations)
                self._emit_notes(2, name.notes)
            out.emit_if_present(1, "SEX", individual.sex)
            for event in individual.events:
                self._emit_event(1, event)
            for attribute in individual.attributes:
                self._emit_event(1, attribute)
            for link in individual.child_families:
                out.emit_required(1, "FAMC", link.family_xref)
                out.emit_if_present(2, "PEDI", link.pedigree)
                self._emit_notes(2, link.notes)
            for link in individual.spouse_families:
                out.emit_required(1, "FAMS", link.family_xref)
                self._emit_notes(2, link.notes)
            for xref in individual.submitter_xrefs:
                out.emit_required(1, "SUBM", xref)
            for association in individual.associations:
                out.emit_required(1, "ASSO", association.associated_xref)
                out.emit_required(2, "TYPE", association.type)
                out.emit_required(2, "RELA", association.relationship)
                self._emit_notes(2, association.notes)
                self._emit_citations(2, association.citations)
            for xref in individual.alias_xrefs:
                out.emit_required(1, "ALIA", xref)
            for xref in individual.ancestor_interest_xrefs:
                out.emit_required(1, "ANCI", xref)
            for xref in individual.descendant_interest_xrefs:
                out.emit_required(1, "DESI", xref)
            self._emit_citations(1, individual.citations)
            self._emit_multimedia_links(1, individual.multimedia)
            self._emit_notes(1, individual.notes)
            out.emit_if_present(1, "RFN", individual.perm_record_file_number)
            out.emit_if_present(1, "AFN", individual.ancestral_file_number)
            self._emit_user_references(1, individual.user_references)
            out.emit_if_present(1, "RIN", individual.rec_id_number)
            self._emit_change_date(1, individual.change_date)

    def _emit_families(self) -> None:
        out = self.out
        for family in self.gedcom.families.values():
            out.emit_tag(0, "FAM", xref=self._record_xref(family, "FAM"))
            for event in family.events:
                self._emit_event(1, event)
            out.emit_if_present(1, "HUSB", family.husband_xref)
            out.emit_if_present(1, "WIFE", family.wife_xref)
            for xref in family.children_xrefs:
                out.emit_required(1, "CHIL", xref)
            out.emit_if_present(1, "NCHI", family.num_children)
            for xref in family.submitter_xrefs:
                out.emit_required(1, "SUBM", xref)
            self._emit_citations(1, family.citations)
            self._emit_multimedia_links(1, family.multimedia)
            self._emit_notes(1, family.notes)
            self._emit_user_references(1, family.user_references)
            out.emit_if_present(1, "RIN", family.rec_id_number)
            self._emit_change_date(1, family.change_date)

    def _emit_multimedia(self) -> None:
        out = self.out
        for m in self.gedcom.multimedia.values():
            out.emit_tag(0, "OBJE", xref=self._record_xref(m, "OBJE"))
            out.emit_required(1, "FORM", m.format)
            out.emit_if_present(1, "TITL", m.title)
            self._emit_notes(1, m.notes)
            if m.blob:
                out.emit_tag(1, "BLOB")
                for blob_line in m.blob:
                    out.emit_required(2, "CONT", blob_line)
            if m.continued_object_xref is not None:
                out.emit_required(1, "OBJE", m.continued_object_xref)
            self._emit_user_references(1, m.user_references)
            out.emit_if_present(1, "RIN", m.rec_id_number)
            self._emit_change_date(1, m.change_date)

    def _emit_note_records(self) -> None:
        for note in self.gedcom.notes.values():
            xref = self._record_xref(note, "NOTE")
            self.out.emit_lines_of_text(0, "NOTE", _escape_text(note.lines) or [""], xref=xref)
            self._emit_citations(1, note.citations)
            self._emit_user_references(1, note.user_references)
            self.out.emit_if_present(1, "RIN", note.rec_id_number)
            self._emit_change_date(1, note.change_date)

    def _emit_repositories(self) -> None:
        out = self.out
        for repository in self.gedcom.repositories.values():
            out.emit_tag(0, "REPO", xref=self._record_xref(repository, "REPO"))
            out.emit_if_present(1, "NAME", repository.name)
            self._emit_address(1, repository.address)
            self._emit_notes(1, repository.notes)
            self._emit_user_references(1, repository.user_references)
            out.emit_if_present(1, "RIN", repository.rec_id_number)
            out.emit_if_present(1, "RFN", repository.reg_file_number)
            self._emit_phone_numbers(1, repository.phone_numbers)
            self._emit_change_date(1, repository.change_date)

    def _emit_sources(self) -> None:
        out = self.out
        for source in self.gedcom.sources.values():
            out.emit_tag(0, "SOUR", xref=self._record_xref(source, "SOUR"))
            data = source.data
            if data is not None:
                out.emit_tag(1, "DATA")
                for event in data.events_recorded:
                    out.emit_optional(2, "EVEN", event.event_type)
                    out.emit_if_present(3, "DATE", event.date_period)
                    out.emit_if_present(3, "PLAC", event.jurisdiction)
                out.emit_if_present(2, "AGNC", data.resp_agency)
                self._emit_notes(2, data.notes)
            out.emit_lines_of_text(1, "AUTH", source.originators_authors)
            out.emit_lines_of_text(1, "TITL", source.title)
            out.emit_if_present(1, "ABBR", source.source_filed_by)
            out.emit_lines_of_text(1, "PUBL", source.publication_facts)
            out.emit_lines_of_text(1, "TEXT", source.source_text)
            self._emit_repository_citation(1, source.repository_citation)
            self._emit_multimedia_links(1, source.multimedia)
            self._emit_notes(1, source.notes)
            self._emit_user_references(1, source.user_references)
            out.emit_if_present(1, "RIN", source.rec_id_number)
            out.emit_if_present(1, "RFN", source.reg_file_number)
            self._emit_change_date(1, source.change_date)

    def _emit_trailer(self) -> None:
        self.out.emit_tag(0, "TRLR")


# ============================================================================
# Export GEDCOM
# ============================================================================

def export_gedcom_content(gedcom: Gedcom, validation_suppressed: bool | None = None) -> str:
    """Export a record graph to a GEDCOM string."""
    return GedcomWriter(gedcom, validation_suppressed=validation_suppressed).write_to_string()


def write_gedcom_file(gedcom: Gedcom, file_path: str, validation_suppressed: bool | None = None) -> None:
    """Write a record graph to a GEDCOM file, all or nothing."""
    GedcomWriter(gedcom, validation_suppressed=validation_suppressed).write(file_path)
