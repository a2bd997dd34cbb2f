"""Tests for the GEDCOM writer.

Covers the line emitter primitives, continuation handling, and whole-document
encoding of each record kind.
"""

import os
import pytest
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gedcom_errors import GedcomError, GedcomValidationError, GedcomWriterError
from gedcom_model import (
    Address,
    ChildToFamilyLink,
    Citation,
    CitationData,
    Event,
    Family,
    Gedcom,
    Individual,
    Multimedia,
    Note,
    PersonalName,
    Place,
    Repository,
    RepositoryCitation,
    Source,
    SourceCallNumber,
    SpouseToFamilyLink,
    Submission,
    Submitter,
)
from gedcom_writer import (
    GedcomWriter,
    LineEmitter,
    export_gedcom_content,
    write_gedcom_file,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def gedcom():
    """Header for system ACME 1.0 in ANSEL, one submitter, no submission."""
    g = Gedcom()
    g.header.source_system.system_id = "ACME"
    g.header.source_system.version_num = "1.0"
    g.header.character_set.character_set_name = "ANSEL"
    g.submitters["@SUBM1@"] = Submitter(xref="@SUBM1@", name="Jane Doe")
    return g


@pytest.fixture
def family_gedcom(gedcom):
    """Two individuals linked through one family."""
    gedcom.individuals["@I1@"] = Individual(
        xref="@I1@",
        names=[PersonalName(basic="John /Smith/", given_name="John", surname="Smith")],
        sex="M",
        events=[Event(tag="BIRT", date="15 MAR 1850", place=Place(name="Boston, Massachusetts"))],
        attributes=[Event(tag="OCCU", value="Farmer")],
        spouse_families=[SpouseToFamilyLink(family_xref="@F1@")],
    )
    gedcom.individuals["@I2@"] = Individual(
        xref="@I2@",
        names=[PersonalName(basic="Mary /Smith/")],
        sex="F",
        child_families=[ChildToFamilyLink(family_xref="@F1@", pedigree="birth")],
    )
    gedcom.families["@F1@"] = Family(
        xref="@F1@",
        events=[Event(tag="MARR", value="Y", date="1875")],
        husband_xref="@I1@",
        children_xrefs=["@I2@"],
    )
    return gedcom


def block(lines, first_line):
    """The lines of the level-0 record starting at ``first_line``."""
    start = lines.index(first_line)
    end = start + 1
    while end < len(lines) and not lines[end].startswith("0 "):
        end += 1
    return lines[start:end]


# ============================================================================
# Line Emitter Tests
# ============================================================================

class TestLineEmitter:
    """Tests for the single-line emitter primitives."""

    def test_emit_tag_with_xref(self):
        out = LineEmitter()
        out.emit_tag(0, "INDI", xref="@I1@")
        assert out.lines == ["0 @I1@ INDI"]

    def test_emit_if_present_skips_none(self):
        out = LineEmitter()
        out.emit_if_present(1, "DATE", None)
        assert out.lines == []

    def test_emit_if_present_keeps_value_verbatim(self):
        """Embedded and repeated spaces survive untouched."""
        out = LineEmitter()
        out.emit_if_present(2, "PAGE", "vol.  3,  p. 12")
        assert out.lines == ["2 PAGE vol.  3,  p. 12"]

    def test_emit_optional_without_value(self):
        out = LineEmitter()
        out.emit_optional(1, "PLAC", None)
        assert out.lines == ["1 PLAC"]

    def test_emit_required_with_value(self):
        out = LineEmitter()
        out.emit_required(1, "SOUR", "ACME")
        assert out.lines == ["1 SOUR ACME"]

    @pytest.mark.parametrize("value", [None, ""])
    def test_emit_required_fails_on_missing_value(self, value):
        out = LineEmitter()
        with pytest.raises(GedcomWriterError) as exc_info:
            out.emit_required(2, "VERS", value)
        assert "VERS" in str(exc_info.value)
        assert "level 2" in str(exc_info.value)
        assert out.lines == []

    def test_value_with_line_break_is_rejected(self):
        out = LineEmitter()
        with pytest.raises(GedcomWriterError):
            out.emit_if_present(1, "NOTE", "first\nsecond")
        assert out.lines == []

    def test_negative_level_is_rejected(self):
        out = LineEmitter()
        with pytest.raises(GedcomWriterError):
            out.emit_tag(-1, "HEAD")


# ============================================================================
# Continuation Tests
# ============================================================================

class TestLinesOfText:
    """Tests for multi-line values written with CONT."""

    def test_one_line_per_entry(self):
        out = LineEmitter()
        out.emit_lines_of_text(1, "NOTE", ["first", "second", "third"])
        assert out.lines == ["1 NOTE first", "2 CONT second", "2 CONT third"]

    def test_blank_entries_are_kept(self):
        out = LineEmitter()
        out.emit_lines_of_text(1, "NOTE", ["first", "", "third"])
        assert out.lines == ["1 NOTE first", "2 CONT", "2 CONT third"]

    def test_single_line(self):
        out = LineEmitter()
        out.emit_lines_of_text(0, "NOTE", ["only"], xref="@N1@")
        assert out.lines == ["0 @N1@ NOTE only"]

    def test_empty_list_writes_nothing(self):
        out = LineEmitter()
        out.emit_lines_of_text(1, "TITL", [])
        assert out.lines == []


# ============================================================================
# Document Tests
# ============================================================================

class TestDocument:
    """Tests for whole-document encoding."""

    def test_header_and_submitter(self, gedcom):
        """The ACME / Jane Doe document, line for line."""
        assert GedcomWriter(gedcom).encode() == [
            "0 HEAD",
            "1 SOUR ACME",
            "2 VERS 1.0",
            "1 GEDC",
            "2 VERS 5.5",
            "2 FORM LINEAGE-LINKED",
            "1 CHAR ANSEL",
            "0 @SUBM1@ SUBM",
            "1 NAME Jane Doe",
            "0 TRLR",
        ]

    def test_no_submission_record(self, gedcom):
        lines = GedcomWriter(gedcom).encode()
        assert not any("SUBN" in line for line in lines)

    def test_submission_record(self, gedcom):
        gedcom.submission = Submission(xref="@SUBN1@", submitter_xref="@SUBM1@", ancestors_count="3")
        gedcom.header.submission_xref = "@SUBN1@"
        gedcom.header.submitter_xref = "@SUBM1@"
        lines = GedcomWriter(gedcom).encode()
        assert "1 SUBM @SUBM1@" in block(lines, "0 HEAD")
        assert "1 SUBN @SUBN1@" in block(lines, "0 HEAD")
        assert block(lines, "0 @SUBN1@ SUBN") == ["0 @SUBN1@ SUBN", "1 SUBM @SUBM1@", "1 ANCE 3"]
        # Submission comes straight after the header
        assert lines.index("0 @SUBN1@ SUBN") < lines.index("0 @SUBM1@ SUBM")

    def test_write_to_string_terminates_every_line(self, gedcom):
        text = export_gedcom_content(gedcom)
        assert text.startswith("0 HEAD\n1 SOUR ACME\n")
        assert text.endswith("0 TRLR\n")

    def test_crlf_line_terminator(self, gedcom):
        text = GedcomWriter(gedcom, line_terminator="\r\n").write_to_string()
        assert text.endswith("1 NAME Jane Doe\r\n0 TRLR\r\n")

    def test_header_details(self, gedcom):
        header = gedcom.header
        header.date = "1 JAN 2024"
        header.time = "10:30:00"
        header.language = "English"
        header.place_hierarchy = "City, County, State"
        header.notes = ["Exported for testing", "second line"]
        lines = block(GedcomWriter(gedcom).encode(), "0 HEAD")
        assert lines[3:5] == ["1 DATE 1 JAN 2024", "2 TIME 10:30:00"]
        assert lines[-5:] == [
            "1 LANG English",
            "1 PLAC",
            "2 FORM City, County, State",
            "1 NOTE Exported for testing",
            "2 CONT second line",
        ]

    def test_submitter_phone_numbers(self, gedcom):
        """Legacy quirk: submitter PHON lines are written although 5.5 SUBM has no PHON."""
        gedcom.submitters["@SUBM1@"].phone_numbers = ["555-1212"]
        lines = block(GedcomWriter(gedcom).encode(), "0 @SUBM1@ SUBM")
        assert lines == ["0 @SUBM1@ SUBM", "1 NAME Jane Doe", "1 PHON 555-1212"]

    def test_submitter_address(self, gedcom):
        gedcom.submitters["@SUBM1@"].address = Address(lines=["1 Main St", "Springfield"], city="Springfield")
        lines = block(GedcomWriter(gedcom).encode(), "0 @SUBM1@ SUBM")
        assert lines[2:] == ["1 ADDR 1 Main St", "2 CONT Springfield", "2 CITY Springfield"]


# ============================================================================
# Record Kind Tests
# ============================================================================

class TestRecords:
    """Tests for individuals, families, notes, sources and multimedia."""

    def test_individual(self, family_gedcom):
        lines = GedcomWriter(family_gedcom).encode()
        assert block(lines, "0 @I1@ INDI") == [
            "0 @I1@ INDI",
            "1 NAME John /Smith/",
            "2 GIVN John",
            "2 SURN Smith",
            "1 SEX M",
            "1 BIRT",
            "2 DATE 15 MAR 1850",
            "2 PLAC Boston, Massachusetts",
            "1 OCCU Farmer",
            "1 FAMS @F1@",
        ]
        assert block(lines, "0 @I2@ INDI") == [
            "0 @I2@ INDI",
            "1 NAME Mary /Smith/",
            "1 SEX F",
            "1 FAMC @F1@",
            "2 PEDI birth",
        ]

    def test_family(self, family_gedcom):
        lines = GedcomWriter(family_gedcom).encode()
        assert block(lines, "0 @F1@ FAM") == [
            "0 @F1@ FAM",
            "1 MARR Y",
            "2 DATE 1875",
            "1 HUSB @I1@",
            "1 CHIL @I2@",
        ]

    def test_record_order(self, family_gedcom):
        family_gedcom.notes["@N1@"] = Note(xref="@N1@", lines=["A note"])
        lines = GedcomWriter(family_gedcom).encode()
        level_zero = [line for line in lines if line.startswith("0 ")]
        assert level_zero == [
            "0 HEAD",
            "0 @SUBM1@ SUBM",
            "0 @I1@ INDI",
            "0 @I2@ INDI",
            "0 @F1@ FAM",
            "0 @N1@ NOTE A note",
            "0 TRLR",
        ]

    def test_note_record_continuation(self, gedcom):
        gedcom.notes["@N1@"] = Note(xref="@N1@", lines=["First", "", "Third"])
        lines = GedcomWriter(gedcom).encode()
        assert block(lines, "0 @N1@ NOTE First") == ["0 @N1@ NOTE First", "1 CONT", "1 CONT Third"]

    def test_note_structures(self, family_gedcom):
        family_gedcom.notes["@N1@"] = Note(xref="@N1@", lines=["Shared"])
        family_gedcom.individuals["@I2@"].notes = [Note(xref="@N1@"), Note(lines=["Inline", "text"])]
        lines = block(GedcomWriter(family_gedcom).encode(), "0 @I2@ INDI")
        assert lines[-3:] == ["1 NOTE @N1@", "1 NOTE Inline", "2 CONT text"]

    def test_leading_at_sign_is_doubled(self, family_gedcom):
        family_gedcom.notes["@N1@"] = Note(xref="@N1@", lines=["@N2@"])
        family_gedcom.individuals["@I2@"].notes = [Note(lines=["@home@", "@ not first"])]
        family_gedcom.individuals["@I2@"].citations = [Citation(description=["@S1@"])]
        lines = GedcomWriter(family_gedcom).encode()
        individual = block(lines, "0 @I2@ INDI")
        assert "1 SOUR @@S1@" in individual
        assert individual[-2:] == ["1 NOTE @@home@", "2 CONT @ not first"]
        assert "0 @N1@ NOTE @@N2@" in lines

    def test_citations(self, family_gedcom):
        family_gedcom.sources["@S1@"] = Source(xref="@S1@", title=["Parish Register"])
        family_gedcom.individuals["@I2@"].citations = [
            Citation(
                source_xref="@S1@",
                where_in_source="p. 12",
                event_cited="BIRT",
                role_in_event="CHIL",
                data=[CitationData(entry_date="1 JAN 1900", texts=[["Born here", "in the parish"]])],
                certainty="3",
            ),
            Citation(description=["Family bible", "held by a cousin"], texts=[["Mary b. 1876"]]),
        ]
        lines = block(GedcomWriter(family_gedcom).encode(), "0 @I2@ INDI")
        assert lines[5:] == [
            "1 SOUR @S1@",
            "2 PAGE p. 12",
            "2 EVEN BIRT",
            "3 ROLE CHIL",
            "2 DATA",
            "3 DATE 1 JAN 1900",
            "3 TEXT Born here",
            "4 CONT in the parish",
            "2 QUAY 3",
            "1 SOUR Family bible",
            "2 CONT held by a cousin",
            "2 TEXT Mary b. 1876",
        ]

    def test_citation_of_unknown_source_fails(self, family_gedcom):
        family_gedcom.individuals["@I1@"].citations = [Citation(source_xref="@S9@")]
        with pytest.raises(GedcomWriterError):
            GedcomWriter(family_gedcom, validation_suppressed=True).encode()

    def test_event_ages(self, family_gedcom):
        family_gedcom.families["@F1@"].events[0].husband_age = "25y"
        family_gedcom.families["@F1@"].events[0].wife_age = "21y"
        lines = block(GedcomWriter(family_gedcom).encode(), "0 @F1@ FAM")
        assert lines[1:7] == ["1 MARR Y", "2 DATE 1875", "2 HUSB", "3 AGE 25y", "2 WIFE", "3 AGE 21y"]

    def test_multimedia_record(self, gedcom):
        gedcom.multimedia["@M1@"] = Multimedia(xref="@M1@", format="jpeg", title="Portrait", blob=["abc", "def"])
        gedcom.multimedia["@M2@"] = Multimedia(xref="@M2@", format="gif")
        lines = GedcomWriter(gedcom).encode()
        assert block(lines, "0 @M1@ OBJE") == [
            "0 @M1@ OBJE", "1 FORM jpeg", "1 TITL Portrait", "1 BLOB", "2 CONT abc", "2 CONT def",
        ]
        # No BLOB without blob data
        assert block(lines, "0 @M2@ OBJE") == ["0 @M2@ OBJE", "1 FORM gif"]

    def test_multimedia_link(self, family_gedcom):
        family_gedcom.individuals["@I2@"].multimedia = [
            Multimedia(format="jpeg", file_reference="mary.jpg", notes=[Note(lines=["Scanned"])]),
        ]
        lines = block(GedcomWriter(family_gedcom).encode(), "0 @I2@ INDI")
        assert lines[-4:] == ["1 OBJE", "2 FORM jpeg", "2 FILE mary.jpg", "2 NOTE Scanned"]


# ============================================================================
# Repository Citation Tests
# ============================================================================

class TestRepositoryCitation:
    """Tests for the link from a source to its repository."""

    def test_missing_repository_reference_fails(self, gedcom):
        gedcom.sources["@S1@"] = Source(xref="@S1@", repository_citation=RepositoryCitation())
        with pytest.raises(GedcomWriterError):
            GedcomWriter(gedcom, validation_suppressed=True).encode()

    def test_unknown_repository_fails(self, gedcom):
        gedcom.sources["@S1@"] = Source(xref="@S1@", repository_citation=RepositoryCitation(repository_xref="@R9@"))
        with pytest.raises(GedcomWriterError):
            GedcomWriter(gedcom, validation_suppressed=True).encode()

    def test_unknown_repository_blocked_by_validation(self, gedcom):
        gedcom.sources["@S1@"] = Source(xref="@S1@", repository_citation=RepositoryCitation(repository_xref="@R9@"))
        with pytest.raises(GedcomValidationError) as exc_info:
            GedcomWriter(gedcom).encode()
        assert exc_info.value.findings
        assert exc_info.value.findings[0].field_name_of_concern == "repository_citation"

    def test_no_call_numbers_is_two_lines(self, gedcom):
        gedcom.repositories["@R1@"] = Repository(xref="@R1@", name="County Archive")
        gedcom.sources["@S1@"] = Source(xref="@S1@", repository_citation=RepositoryCitation(repository_xref="@R1@"))
        lines = GedcomWriter(gedcom).encode()
        assert block(lines, "0 @S1@ SOUR") == ["0 @S1@ SOUR", "1 REPO @R1@"]

    def test_call_numbers(self, gedcom):
        gedcom.repositories["@R1@"] = Repository(xref="@R1@", name="County Archive")
        gedcom.sources["@S1@"] = Source(
            xref="@S1@",
            title=["Parish Register", "of St. Mary"],
            repository_citation=RepositoryCitation(
                repository_xref="@R1@",
                call_numbers=[SourceCallNumber(call_number="F-123", media_type="book")],
            ),
        )
        lines = GedcomWriter(gedcom).encode()
        assert block(lines, "0 @S1@ SOUR") == [
            "0 @S1@ SOUR",
            "1 TITL Parish Register",
            "2 CONT of St. Mary",
            "1 REPO @R1@",
            "2 CALN F-123",
            "3 MEDI book",
        ]
        assert block(lines, "0 @R1@ REPO") == ["0 @R1@ REPO", "1 NAME County Archive"]


# ============================================================================
# Validation Before Writing Tests
# ============================================================================

class TestValidationBeforeWrite:
    """Tests for the validation pass the writer runs first."""

    def test_error_findings_block_the_write(self, family_gedcom):
        family_gedcom.individuals["@I1@"].spouse_families.append(SpouseToFamilyLink(family_xref="@F9@"))
        with pytest.raises(GedcomValidationError) as exc_info:
            GedcomWriter(family_gedcom).encode()
        assert isinstance(exc_info.value, GedcomError)
        assert len(exc_info.value.findings) == 1

    def test_suppressed_validation_writes_anyway(self, family_gedcom):
        family_gedcom.individuals["@I1@"].spouse_families.append(SpouseToFamilyLink(family_xref="@F9@"))
        lines = GedcomWriter(family_gedcom, validation_suppressed=True).encode()
        assert "1 FAMS @F9@" in lines

    def test_writer_does_not_repair(self, family_gedcom):
        family_gedcom.individuals["@I1@"].sex = "X"
        lines = GedcomWriter(family_gedcom).encode()
        assert "1 SEX X" in lines

    def test_none_graph_is_rejected(self):
        with pytest.raises(ValueError):
            GedcomWriter(None)


# ============================================================================
# File Writing Tests
# ============================================================================

class TestWriteFile:
    """Tests for writing documents to disk."""

    def test_write_sets_file_name(self, gedcom, tmp_path):
        path = tmp_path / "family.ged"
        write_gedcom_file(gedcom, str(path))
        content = path.read_text(encoding="utf-8")
        assert "1 FILE family.ged\n" in content
        assert content.endswith("0 TRLR\n")
        # The graph itself is left alone
        assert gedcom.header.file_name is None

    def test_failed_write_leaves_existing_file(self, gedcom, tmp_path):
        path = tmp_path / "family.ged"
        path.write_text("original", encoding="utf-8")
        gedcom.sources["@S1@"] = Source(xref="@S1@", repository_citation=RepositoryCitation(repository_xref="@R9@"))

        with pytest.raises(GedcomWriterError):
            write_gedcom_file(gedcom, str(path), validation_suppressed=True)

        assert path.read_text(encoding="utf-8") == "original"
        assert os.listdir(tmp_path) == ["family.ged"]

    def test_unencodable_text_leaves_no_temporary_file(self, gedcom, tmp_path):
        path = tmp_path / "family.ged"
        path.write_text("original", encoding="utf-8")
        gedcom.submitters["@SUBM1@"].name = "bad \ud800"

        with pytest.raises(UnicodeEncodeError):
            write_gedcom_file(gedcom, str(path), validation_suppressed=True)

        assert path.read_text(encoding="utf-8") == "original"
        assert os.listdir(tmp_path) == ["family.ged"]

    def test_unencodable_text_creates_nothing(self, gedcom, tmp_path):
        gedcom.submitters["@SUBM1@"].name = "bad \ud800"
        with pytest.raises(UnicodeEncodeError):
            write_gedcom_file(gedcom, str(tmp_path / "family.ged"), validation_suppressed=True)
        assert os.listdir(tmp_path) == []
