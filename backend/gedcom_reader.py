"""GEDCOM 5.5 reader: turns GEDCOM text into a Gedcom record graph.

Lines are tokenized into an element tree by python-gedcom's Parser (in
non-strict mode), then each top-level element is mapped onto the matching
record model. CONT children start a new line of a multi-line value, CONC
children are appended to the current line.
"""

import logging
import os
import tempfile
from typing import Any, Callable

from gedcom.parser import Parser

from gedcom_errors import GedcomReaderError
from gedcom_model import (
    FAMILY_EVENT_TAGS,
    INDIVIDUAL_ATTRIBUTE_TAGS,
    INDIVIDUAL_EVENT_TAGS,
    Address,
    Association,
    ChangeDate,
    CharacterSet,
    ChildToFamilyLink,
    Citation,
    CitationData,
    Corporation,
    Event,
    EventRecorded,
    Family,
    Gedcom,
    GedcomVersion,
    Header,
    HeaderSourceData,
    Individual,
    Multimedia,
    Note,
    PersonalName,
    Place,
    Repository,
    RepositoryCitation,
    Source,
    SourceCallNumber,
    SourceData,
    SourceSystem,
    SpouseToFamilyLink,
    Submission,
    Submitter,
    Trailer,
    UserReference,
)

logger = logging.getLogger("gedline.reader")

CONTINUATION_TAGS = ("CONT", "CONC")

Handler = Callable[[Any, Any], None]


# ============================================================================
# Element helpers
# ============================================================================

def _is_pointer(value: str | None) -> bool:
    return (bool(value) and value.startswith("@") and not value.startswith("@@")
            and value.endswith("@") and len(value) > 2)


def _value(element) -> str | None:
    """Single-line value of an element, with any CONC children joined on. Empty is None."""
    text = element.get_value() or ""
    for child in element.get_child_elements():
        if child.get_tag() == "CONC":
            text += child.get_value() or ""
    return text or None


def _lines(element) -> list[str]:
    """Multi-line value of an element: one entry per CONT, CONC joined onto the current entry."""
    lines = [element.get_value() or ""]
    for child in element.get_child_elements():
        tag = child.get_tag()
        if tag == "CONT":
            lines.append(child.get_value() or "")
        elif tag == "CONC":
            lines[-1] += child.get_value() or ""
    if lines == [""]:
        return []
    return lines


def _text(element) -> list[str]:
    """Lines of free text, with a leading @@ escape undone."""
    lines = _lines(element)
    if lines and lines[0].startswith("@@"):
        lines[0] = lines[0][1:]
    return lines


# ============================================================================
# Record Decoders
# ============================================================================

class GedcomReader:
    """Maps a python-gedcom element tree onto a Gedcom record graph."""

    def __init__(self, parser: Parser):
        self.parser = parser
        self.gedcom = Gedcom(header=None, trailer=None)
        self.skipped = 0

    def read(self) -> Gedcom:
        gedcom = self.gedcom
        for element in self.parser.get_root_element().get_child_elements():
            tag = element.get_tag()
            if tag == "HEAD":
                gedcom.header = self._read_header(element)
            elif tag == "TRLR":
                gedcom.trailer = Trailer()
            elif tag == "SUBN":
                gedcom.submission = self._read_submission(element)
            elif tag in _RECORD_READERS:
                mapping_name, read = _RECORD_READERS[tag]
                xref = element.get_pointer()
                if not xref:
                    logger.warning(f"Skipping 0 {tag} record with no cross-reference id")
                    continue
                mapping = getattr(gedcom, mapping_name)
                if xref in mapping:
                    logger.warning(f"Duplicate {tag} record {xref}; keeping the last one")
                mapping[xref] = read(self, element)
            else:
                self._skip(element, None)

        if gedcom.header is None:
            raise GedcomReaderError("Not a GEDCOM document: no HEAD record found")
        logger.info(
            f"Decoded GEDCOM with {len(gedcom.individuals)} individuals, "
            f"{len(gedcom.families)} families, {len(gedcom.sources)} sources"
            + (f" ({self.skipped} unknown lines skipped)" if self.skipped else "")
        )
        return gedcom

    def _skip(self, element, parent) -> None:
        self.skipped += 1
        where = parent.get_tag() if parent is not None else "root"
        logger.debug(f"Skipping unsupported tag {element.get_tag()} under {where}")

    def _apply(self, record: Any, element, scalars: dict[str, str],
               handlers: dict[str, Handler] | None = None) -> None:
        """
        Read the children of ``element`` into ``record``.

        Tags in ``scalars`` set a single-valued field, tags in ``handlers``
        get custom handling, and anything left is tried against the
        structures shared by many records (notes, citations, ...).
        """
        for child in element.get_child_elements():
            tag = child.get_tag()
            if tag in CONTINUATION_TAGS:
                continue
            if tag in scalars:
                setattr(record, scalars[tag], _value(child))
            elif handlers and tag in handlers:
                handlers[tag](record, child)
            elif not self._read_shared(record, child):
                self._skip(child, element)

    def _read_shared(self, record: Any, element) -> bool:
        fields = type(record).model_fields
        tag = element.get_tag()
        if tag == "NOTE" and "notes" in fields:
            record.notes.append(self._read_note_structure(element))
        elif tag == "SOUR" and "citations" in fields:
            record.citations.append(self._read_citation(element))
        elif tag == "OBJE" and "multimedia" in fields:
            record.multimedia.append(self._read_multimedia_link(element))
        elif tag == "REFN" and "user_references" in fields:
            ref = UserReference(reference_num=_value(element))
            self._apply(ref, element, {"TYPE": "type"})
            record.user_references.append(ref)
        elif tag == "CHAN" and "change_date" in fields:
            record.change_date = self._read_change_date(element)
        elif tag == "ADDR" and "address" in fields:
            record.address = self._read_address(element)
        elif tag == "PHON" and "phone_numbers" in fields:
            record.phone_numbers.append(element.get_value() or "")
        else:
            return False
        return True

    # ------------------------------------------------------------------
    # Shared structures
    # ------------------------------------------------------------------

    def _read_address(self, element) -> Address:
        address = Address(lines=_lines(element))
        self._apply(address, element, {
            "ADR1": "addr1",
            "ADR2": "addr2",
            "CITY": "city",
            "STAE": "state_province",
            "POST": "postal_code",
            "CTRY": "country",
        })
        return address

    def _read_change_date(self, element) -> ChangeDate:
        change_date = ChangeDate()

        def read_date(record: ChangeDate, child) -> None:
            record.date = _value(child)
            self._apply(record, child, {"TIME": "time"})

        self._apply(change_date, element, {}, {"DATE": read_date})
        return change_date

    def _read_note_structure(self, element) -> Note:
        value = element.get_value()
        if _is_pointer(value):
            return Note(xref=value)
        note = Note(lines=_text(element))
        self._apply(note, element, {})
        return note

    def _read_multimedia_link(self, element) -> Multimedia:
        value = element.get_value()
        if _is_pointer(value):
            return Multimedia(xref=value)
        link = Multimedia()
        self._apply(link, element, {"FORM": "format", "TITL": "title", "FILE": "file_reference"})
        return link

    def _read_citation(self, element) -> Citation:
        value = element.get_value()
        if _is_pointer(value):
            citation = Citation(source_xref=value)
        else:
            citation = Citation(description=_text(element))

        def read_event(record: Citation, child) -> None:
            record.event_cited = _value(child)
            self._apply(record, child, {"ROLE": "role_in_event"})

        def read_data(record: Citation, child) -> None:
            data = CitationData()
            self._apply(data, child, {"DATE": "entry_date"},
                        {"TEXT": lambda d, text: d.texts.append(_lines(text))})
            record.data.append(data)

        self._apply(citation, element, {"PAGE": "where_in_source", "QUAY": "certainty"}, {
            "EVEN": read_event,
            "DATA": read_data,
            "TEXT": lambda record, child: record.texts.append(_lines(child)),
        })
        return citation

    def _read_place(self, element) -> Place:
        place = Place(name=_value(element))
        self._apply(place, element, {"FORM": "form"})
        return place

    def _read_event(self, element) -> Event:
        event = Event(tag=element.get_tag(), value=_value(element))

        def read_age(field: str) -> Handler:
            def read(record: Event, child) -> None:
                age = next((c for c in child.get_child_elements() if c.get_tag() == "AGE"), None)
                setattr(record, field, _value(age) if age is not None else None)
            return read

        self._apply(event, element, {
            "TYPE": "type",
            "DATE": "date",
            "AGE": "age",
            "AGNC": "agency",
            "CAUS": "cause",
        }, {
            "PLAC": lambda record, child: setattr(record, "place", self._read_place(child)),
            "HUSB": read_age("husband_age"),
            "WIFE": read_age("wife_age"),
        })
        return event

    # ------------------------------------------------------------------
    # Header and submission
    # ------------------------------------------------------------------

    def _read_header(self, element) -> Header:
        header = Header(source_system=None, gedcom_version=None, character_set=None)

        def read_date(record: Header, child) -> None:
            record.date = _value(child)
            self._apply(record, child, {"TIME": "time"})

        def read_gedc(record: Header, child) -> None:
            record.gedcom_version = GedcomVersion(version_number=None, gedcom_form=None)
            self._apply(record.gedcom_version, child, {"VERS": "version_number", "FORM": "gedcom_form"})

        def read_char(record: Header, child) -> None:
            record.character_set = CharacterSet(character_set_name=_value(child))
            self._apply(record.character_set, child, {"VERS": "version_num"})

        def read_plac(record: Header, child) -> None:
            self._apply(record, child, {"FORM": "place_hierarchy"})

        self._apply(header, element, {
            "DEST": "destination_system",
            "SUBM": "submitter_xref",
            "SUBN": "submission_xref",
            "FILE": "file_name",
            "COPR": "copyright_data",
            "LANG": "language",
        }, {
            "SOUR": lambda record, child: setattr(record, "source_system", self._read_source_system(child)),
            "DATE": read_date,
            "GEDC": read_gedc,
            "CHAR": read_char,
            "PLAC": read_plac,
            "NOTE": lambda record, child: setattr(record, "notes", _lines(child)),
        })
        return header

    def _read_source_system(self, element) -> SourceSystem:
        source_system = SourceSystem(system_id=_value(element))

        def read_corp(record: SourceSystem, child) -> None:
            record.corporation = Corporation(business_name=_value(child))
            self._apply(record.corporation, child, {})

        def read_data(record: SourceSystem, child) -> None:
            record.source_data = HeaderSourceData(name=_value(child))
            self._apply(record.source_data, child, {"DATE": "publish_date", "COPR": "copyright"})

        self._apply(source_system, element, {"VERS": "version_num", "NAME": "product_name"},
                    {"CORP": read_corp, "DATA": read_data})
        return source_system

    def _read_submission(self, element) -> Submission:
        submission = Submission(xref=element.get_pointer() or None)
        self._apply(submission, element, {
            "SUBM": "submitter_xref",
            "FAMF": "name_of_family_file",
            "TEMP": "temple_code",
            "ANCE": "ancestors_count",
            "DESC": "descendants_count",
            "ORDI": "ordinance_process_flag",
            "RIN": "rec_id_number",
        })
        return submission

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _read_submitter(self, element) -> Submitter:
        submitter = Submitter(xref=element.get_pointer())
        self._apply(submitter, element, {"NAME": "name", "RFN": "reg_file_number", "RIN": "rec_id_number"},
                    {"LANG": lambda record, child: record.language_pref.append(child.get_value() or "")})
        return submitter

    def _read_individual(self, element) -> Individual:
        individual = Individual(xref=element.get_pointer())

        def read_name(record: Individual, child) -> None:
            name = PersonalName(basic=_value(child))
            self._apply(name, child, {
                "NPFX": "prefix",
                "GIVN": "given_name",
                "NICK": "nickname",
                "SPFX": "surname_prefix",
                "SURN": "surname",
                "NSFX": "suffix",
            })
            record.names.append(name)

        def read_famc(record: Individual, child) -> None:
            link = ChildToFamilyLink(family_xref=_value(child))
            self._apply(link, child, {"PEDI": "pedigree"})
            record.child_families.append(link)

        def read_fams(record: Individual, child) -> None:
            link = SpouseToFamilyLink(family_xref=_value(child))
            self._apply(link, child, {})
            record.spouse_families.append(link)

        def read_asso(record: Individual, child) -> None:
            association = Association(associated_xref=_value(child))
            self._apply(association, child, {"TYPE": "type", "RELA": "relationship"})
            record.associations.append(association)

        def append_xref(field: str) -> Handler:
            return lambda record, child: getattr(record, field).append(child.get_value() or "")

        handlers: dict[str, Handler] = {
            "NAME": read_name,
            "FAMC": read_famc,
            "FAMS": read_fams,
            "ASSO": read_asso,
            "SUBM": append_xref("submitter_xrefs"),
            "ALIA": append_xref("alias_xrefs"),
            "ANCI": append_xref("ancestor_interest_xrefs"),
            "DESI": append_xref("descendant_interest_xrefs"),
        }
        for tag in INDIVIDUAL_EVENT_TAGS:
            handlers[tag] = lambda record, child: record.events.append(self._read_event(child))
        for tag in INDIVIDUAL_ATTRIBUTE_TAGS:
            handlers[tag] = lambda record, child: record.attributes.append(self._read_event(child))

        self._apply(individual, element, {
            "RESN": "restriction",
            "SEX": "sex",
            "RFN": "perm_record_file_number",
            "AFN": "ancestral_file_number",
            "RIN": "rec_id_number",
        }, handlers)
        return individual

    def _read_family(self, element) -> Family:
        family = Family(xref=element.get_pointer())
        handlers: dict[str, Handler] = {
            "CHIL": lambda record, child: record.children_xrefs.append(child.get_value() or ""),
            "SUBM": lambda record, child: record.submitter_xrefs.append(child.get_value() or ""),
        }
        for tag in FAMILY_EVENT_TAGS:
            handlers[tag] = lambda record, child: record.events.append(self._read_event(child))
        self._apply(family, element, {
            "HUSB": "husband_xref",
            "WIFE": "wife_xref",
            "NCHI": "num_children",
            "RIN": "rec_id_number",
        }, handlers)
        return family

    def _read_multimedia(self, element) -> Multimedia:
        m = Multimedia(xref=element.get_pointer())

        def read_blob(record: Multimedia, child) -> None:
            record.blob = [c.get_value() or "" for c in child.get_child_elements() if c.get_tag() == "CONT"]

        self._apply(m, element, {"FORM": "format", "TITL": "title", "RIN": "rec_id_number"}, {
            "BLOB": read_blob,
            "OBJE": lambda record, child: setattr(record, "continued_object_xref", _value(child)),
        })
        return m

    def _read_note_record(self, element) -> Note:
        note = Note(xref=element.get_pointer(), lines=_text(element))
        self._apply(note, element, {"RIN": "rec_id_number"})
        return note

    def _read_repository(self, element) -> Repository:
        repository = Repository(xref=element.get_pointer())
        self._apply(repository, element, {"NAME": "name", "RIN": "rec_id_number", "RFN": "reg_file_number"})
        return repository

    def _read_source(self, element) -> Source:
        source = Source(xref=element.get_pointer())

        def read_data(record: Source, child) -> None:
            data = SourceData()

            def read_even(d: SourceData, even) -> None:
                event = EventRecorded(event_type=_value(even))
                self._apply(event, even, {"DATE": "date_period", "PLAC": "jurisdiction"})
                d.events_recorded.append(event)

            self._apply(data, child, {"AGNC": "resp_agency"}, {"EVEN": read_even})
            record.data = data

        def read_repo(record: Source, child) -> None:
            citation = RepositoryCitation(repository_xref=_value(child))

            def read_caln(c: RepositoryCitation, caln) -> None:
                call_number = SourceCallNumber(call_number=_value(caln))
                self._apply(call_number, caln, {"MEDI": "media_type"})
                c.call_numbers.append(call_number)

            self._apply(citation, child, {}, {"CALN": read_caln})
            record.repository_citation = citation

        def read_lines(field: str) -> Handler:
            return lambda record, child: setattr(record, field, _lines(child))

        self._apply(source, element, {
            "ABBR": "source_filed_by",
            "RIN": "rec_id_number",
            "RFN": "reg_file_number",
        }, {
            "DATA": read_data,
            "AUTH": read_lines("originators_authors"),
            "TITL": read_lines("title"),
            "PUBL": read_lines("publication_facts"),
            "TEXT": read_lines("source_text"),
            "REPO": read_repo,
        })
        return source


_RECORD_READERS: dict[str, tuple[str, Callable[[GedcomReader, Any], Any]]] = {
    "SUBM": ("submitters", GedcomReader._read_submitter),
    "INDI": ("individuals", GedcomReader._read_individual),
    "FAM": ("families", GedcomReader._read_family),
    "OBJE": ("multimedia", GedcomReader._read_multimedia),
    "NOTE": ("notes", GedcomReader._read_note_record),
    "REPO": ("repositories", GedcomReader._read_repository),
    "SOUR": ("sources", GedcomReader._read_source),
}


# ============================================================================
# Parse GEDCOM
# ============================================================================

def parse_gedcom_content(content: str) -> Gedcom:
    """Parse GEDCOM content from a string into a record graph."""
    # Write content to temp file (python-gedcom requires file path)
    with tempfile.NamedTemporaryFile(mode="w", suffix=".ged", delete=False, encoding="utf-8") as f:
        f.write(content)
        temp_path = f.name

    try:
        parser = Parser()
        parser.parse_file(temp_path, strict=False)
    except Exception as e:
        logger.error(f"Failed to tokenize GEDCOM content: {e}")
        raise GedcomReaderError(f"Failed to parse GEDCOM: {e}") from e
    finally:
        os.unlink(temp_path)

    return GedcomReader(parser).read()


def parse_gedcom_file(file_path: str) -> Gedcom:
    """Parse a GEDCOM file into a record graph. UTF-8 is tried first, then latin-1."""
    with open(file_path, "rb") as f:
        content = f.read()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("UTF-8 decode failed, trying latin-1 encoding")
        text = content.decode("latin-1")
    return parse_gedcom_content(text)
