"""Validation of the SUBN record."""

from gedcom_model import Submission
from .base import RecordValidator
from .findings import ProblemCode, Severity

ORDINANCE_FLAGS = ("yes", "no")


class SubmissionValidator(RecordValidator):

    def __init__(self, validator, submission: Submission | None):
        super().__init__(validator)
        self.submission = submission

    def validate(self) -> None:
        submission = self.submission
        if submission is None:
            return
        if not submission.xref:
            self.finding(submission, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "xref")
        self.check_xref(submission, "submitter_xref", self.gedcom.submitters)
        self.check_optional_values(submission, "name_of_family_file", "temple_code", "ancestors_count",
                                   "descendants_count", "ordinance_process_flag", "rec_id_number")
        self.check_digits(submission, "ancestors_count")
        self.check_digits(submission, "descendants_count")

        flag = submission.ordinance_process_flag
        if flag is not None and flag.strip() and flag.strip().lower() not in ORDINANCE_FLAGS:
            self.finding(submission, Severity.WARNING, ProblemCode.ILLEGAL_VALUE, "ordinance_process_flag")
