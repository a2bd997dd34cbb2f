"""Exceptions raised by the GEDCOM reader, writer and validation framework."""


class GedcomError(Exception):
    """Base class for gedline errors."""


class GedcomReaderError(GedcomError):
    """The text could not be turned into a record graph."""


class GedcomWriterError(GedcomError):
    """The record graph is malformed and cannot be written.

    Raised before any part of the offending line is produced; the document
    being written must be discarded.
    """


class GedcomValidationError(GedcomError):
    """Validation before writing turned up findings that block the write."""

    def __init__(self, message: str, findings: list | None = None):
        super().__init__(message)
        self.findings = findings or []


class ProblemCodeError(GedcomError, ValueError):
    """A reserved problem code or description was used for a custom finding."""
