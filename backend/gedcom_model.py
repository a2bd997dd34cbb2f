"""GEDCOM 5.5 record graph.

Records own their scalar fields and nested structures. Links between
top-level records are stored as cross-reference ids (``*_xref`` fields) and
resolved by looking the id up in the matching mapping on ``Gedcom``.
"""

from pydantic import BaseModel, Field


# ============================================================================
# Tag vocabularies used to sort events from attributes
# ============================================================================

INDIVIDUAL_EVENT_TAGS = (
    "BIRT", "CHR", "DEAT", "BURI", "CREM", "ADOP", "BAPM", "BARM", "BASM",
    "BLES", "CHRA", "CONF", "FCOM", "ORDN", "NATU", "EMIG", "IMMI", "CENS",
    "PROB", "WILL", "GRAD", "RETI", "EVEN",
)

INDIVIDUAL_ATTRIBUTE_TAGS = (
    "CAST", "DSCR", "EDUC", "IDNO", "NATI", "NCHI", "NMR", "OCCU", "PROP",
    "RELI", "RESI", "SSN", "TITL",
)

FAMILY_EVENT_TAGS = (
    "ANUL", "CENS", "DIV", "DIVF", "ENGA", "MARR", "MARB", "MARC", "MARL",
    "MARS", "EVEN",
)

VALID_SEX_VALUES = ("M", "F", "U")


# ============================================================================
# Shared structures
# ============================================================================

class Address(BaseModel):
    """ADDRESS_STRUCTURE: free-form lines plus the optional parsed pieces."""
    lines: list[str] = Field(default_factory=list)
    addr1: str | None = None
    addr2: str | None = None
    city: str | None = None
    state_province: str | None = None
    postal_code: str | None = None
    country: str | None = None


class UserReference(BaseModel):
    """REFN with its optional TYPE."""
    reference_num: str | None = None
    type: str | None = None


class ChangeDate(BaseModel):
    """CHANGE_DATE: when a record was last modified."""
    date: str | None = None
    time: str | None = None
    notes: list["Note"] = Field(default_factory=list)


class Note(BaseModel):
    """A note, either a top-level NOTE record or a NOTE_STRUCTURE.

    Inside another record, a note with an xref is a pointer to the note
    record of that id; a note without one carries its own text.
    """
    xref: str | None = None
    lines: list[str] = Field(default_factory=list)
    citations: list["Citation"] = Field(default_factory=list)
    user_references: list[UserReference] = Field(default_factory=list)
    rec_id_number: str | None = None
    change_date: ChangeDate | None = None


class Multimedia(BaseModel):
    """A multimedia record (with xref) or an inline multimedia link (without)."""
    xref: str | None = None
    format: str | None = None
    title: str | None = None
    file_reference: str | None = None
    notes: list[Note] = Field(default_factory=list)
    blob: list[str] = Field(default_factory=list)
    continued_object_xref: str | None = None
    user_references: list[UserReference] = Field(default_factory=list)
    rec_id_number: str | None = None
    change_date: ChangeDate | None = None


class CitationData(BaseModel):
    """DATA block of a source citation."""
    entry_date: str | None = None
    texts: list[list[str]] = Field(default_factory=list)


class Citation(BaseModel):
    """SOURCE_CITATION.

    With ``source_xref`` set this points at a source record; without it the
    citation describes its source inline through ``description``.
    """
    source_xref: str | None = None
    where_in_source: str | None = None
    event_cited: str | None = None
    role_in_event: str | None = None
    data: list[CitationData] = Field(default_factory=list)
    certainty: str | None = None
    description: list[str] = Field(default_factory=list)
    texts: list[list[str]] = Field(default_factory=list)
    multimedia: list[Multimedia] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)


class Place(BaseModel):
    """PLACE_STRUCTURE."""
    name: str | None = None
    form: str | None = None
    citations: list[Citation] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)


class Event(BaseModel):
    """An event or attribute with its EVENT_DETAIL.

    ``tag`` is the GEDCOM tag (BIRT, MARR, OCCU, ...). ``value`` is the
    attribute value, or ``Y`` for an event asserted without details.
    """
    tag: str
    value: str | None = None
    type: str | None = None
    date: str | None = None
    place: Place | None = None
    address: Address | None = None
    phone_numbers: list[str] = Field(default_factory=list)
    age: str | None = None
    agency: str | None = None
    cause: str | None = None
    husband_age: str | None = None
    wife_age: str | None = None
    citations: list[Citation] = Field(default_factory=list)
    multimedia: list[Multimedia] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)


# ============================================================================
# Header
# ============================================================================

class Corporation(BaseModel):
    """CORP block of the header source system."""
    business_name: str | None = None
    address: Address | None = None
    phone_numbers: list[str] = Field(default_factory=list)


class HeaderSourceData(BaseModel):
    """DATA block of the header source system."""
    name: str | None = None
    publish_date: str | None = None
    copyright: str | None = None


class SourceSystem(BaseModel):
    """The system that produced the file (HEAD.SOUR)."""
    system_id: str | None = "UNSPECIFIED"
    version_num: str | None = None
    product_name: str | None = None
    corporation: Corporation | None = None
    source_data: HeaderSourceData | None = None


class GedcomVersion(BaseModel):
    version_number: str | None = "5.5"
    gedcom_form: str | None = "LINEAGE-LINKED"


class CharacterSet(BaseModel):
    character_set_name: str | None = "ANSEL"
    version_num: str | None = None


class Header(BaseModel):
    """HEAD record."""
    source_system: SourceSystem | None = Field(default_factory=SourceSystem)
    destination_system: str | None = None
    date: str | None = None
    time: str | None = None
    submitter_xref: str | None = None
    submission_xref: str | None = None
    file_name: str | None = None
    copyright_data: str | None = None
    gedcom_version: GedcomVersion | None = Field(default_factory=GedcomVersion)
    character_set: CharacterSet | None = Field(default_factory=CharacterSet)
    language: str | None = None
    place_hierarchy: str | None = None
    notes: list[str] = Field(default_factory=list)


# ============================================================================
# Top-level records
# ============================================================================

class Submitter(BaseModel):
    xref: str | None = None
    name: str | None = None
    address: Address | None = None
    multimedia: list[Multimedia] = Field(default_factory=list)
    language_pref: list[str] = Field(default_factory=list)
    # Not in the 5.5 grammar for SUBM, but seen in real files and kept
    phone_numbers: list[str] = Field(default_factory=list)
    reg_file_number: str | None = None
    rec_id_number: str | None = None
    change_date: ChangeDate | None = None


class Submission(BaseModel):
    xref: str | None = None
    submitter_xref: str | None = None
    name_of_family_file: str | None = None
    temple_code: str | None = None
    ancestors_count: str | None = None
    descendants_count: str | None = None
    ordinance_process_flag: str | None = None
    rec_id_number: str | None = None


class Repository(BaseModel):
    xref: str | None = None
    name: str | None = None
    address: Address | None = None
    notes: list[Note] = Field(default_factory=list)
    user_references: list[UserReference] = Field(default_factory=list)
    rec_id_number: str | None = None
    reg_file_number: str | None = None
    phone_numbers: list[str] = Field(default_factory=list)
    change_date: ChangeDate | None = None


class SourceCallNumber(BaseModel):
    call_number: str | None = None
    media_type: str | None = None


class RepositoryCitation(BaseModel):
    """SOURCE_REPOSITORY_CITATION: a link from a source to a repository."""
    repository_xref: str | None = None
    notes: list[Note] = Field(default_factory=list)
    call_numbers: list[SourceCallNumber] = Field(default_factory=list)


class EventRecorded(BaseModel):
    event_type: str | None = None
    date_period: str | None = None
    jurisdiction: str | None = None


class SourceData(BaseModel):
    events_recorded: list[EventRecorded] = Field(default_factory=list)
    resp_agency: str | None = None
    notes: list[Note] = Field(default_factory=list)


class Source(BaseModel):
    xref: str | None = None
    data: SourceData | None = None
    originators_authors: list[str] = Field(default_factory=list)
    title: list[str] = Field(default_factory=list)
    source_filed_by: str | None = None
    publication_facts: list[str] = Field(default_factory=list)
    source_text: list[str] = Field(default_factory=list)
    repository_citation: RepositoryCitation | None = None
    multimedia: list[Multimedia] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    user_references: list[UserReference] = Field(default_factory=list)
    rec_id_number: str | None = None
    reg_file_number: str | None = None
    change_date: ChangeDate | None = None


class PersonalName(BaseModel):
    """PERSONAL_NAME_STRUCTURE."""
    basic: str | None = None
    prefix: str | None = None
    given_name: str | None = None
    nickname: str | None = None
    surname_prefix: str | None = None
    surname: str | None = None
    suffix: str | None = None
    citations: list[Citation] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)


class ChildToFamilyLink(BaseModel):
    family_xref: str | None = None
    pedigree: str | None = None
    notes: list[Note] = Field(default_factory=list)


class SpouseToFamilyLink(BaseModel):
    family_xref: str | None = None
    notes: list[Note] = Field(default_factory=list)


class Association(BaseModel):
    """ASSOCIATION_STRUCTURE (ASSO)."""
    associated_xref: str | None = None
    type: str | None = None
    relationship: str | None = None
    notes: list[Note] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)


class Individual(BaseModel):
    xref: str | None = None
    restriction: str | None = None
    names: list[PersonalName] = Field(default_factory=list)
    sex: str | None = None
    events: list[Event] = Field(default_factory=list)
    attributes: list[Event] = Field(default_factory=list)
    child_families: list[ChildToFamilyLink] = Field(default_factory=list)
    spouse_families: list[SpouseToFamilyLink] = Field(default_factory=list)
    submitter_xrefs: list[str] = Field(default_factory=list)
    associations: list[Association] = Field(default_factory=list)
    alias_xrefs: list[str] = Field(default_factory=list)
    ancestor_interest_xrefs: list[str] = Field(default_factory=list)
    descendant_interest_xrefs: list[str] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    multimedia: list[Multimedia] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    perm_record_file_number: str | None = None
    ancestral_file_number: str | None = None
    user_references: list[UserReference] = Field(default_factory=list)
    rec_id_number: str | None = None
    change_date: ChangeDate | None = None


class Family(BaseModel):
    xref: str | None = None
    events: list[Event] = Field(default_factory=list)
    husband_xref: str | None = None
    wife_xref: str | None = None
    children_xrefs: list[str] = Field(default_factory=list)
    num_children: str | None = None
    submitter_xrefs: list[str] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    multimedia: list[Multimedia] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    user_references: list[UserReference] = Field(default_factory=list)
    rec_id_number: str | None = None
    change_date: ChangeDate | None = None


class Trailer(BaseModel):
    """TRLR. Carries no data; its presence is what matters."""


class Gedcom(BaseModel):
    """Root of the record graph. Every mapping is keyed by the record's xref."""
    header: Header | None = Field(default_factory=Header)
    submission: Submission | None = None
    submitters: dict[str, Submitter] = Field(default_factory=dict)
    individuals: dict[str, Individual] = Field(default_factory=dict)
    families: dict[str, Family] = Field(default_factory=dict)
    multimedia: dict[str, Multimedia] = Field(default_factory=dict)
    notes: dict[str, Note] = Field(default_factory=dict)
    repositories: dict[str, Repository] = Field(default_factory=dict)
    sources: dict[str, Source] = Field(default_factory=dict)
    trailer: Trailer | None = Field(default_factory=Trailer)


# Note, Citation, Multimedia and ChangeDate refer to each other
for _model in (ChangeDate, Note, Multimedia, Citation, Place, Event, Corporation,
               Header, Submitter, Repository, RepositoryCitation, SourceData,
               Source, PersonalName, ChildToFamilyLink, SpouseToFamilyLink,
               Association, Individual, Family, Gedcom):
    _model.model_rebuild()
