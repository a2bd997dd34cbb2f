"""The validator: a depth-first pass over a Gedcom record graph.

Typical usage is to create a Validator for the Gedcom being checked,
optionally install an auto-repair policy, call ``validate()`` and then read
``results``.
"""

import logging
from typing import Any, Callable

from gedcom_errors import ProblemCodeError
from gedcom_model import Gedcom, Trailer
from .family import FamilyValidator
from .findings import (
    AUTO_REPAIR_NONE,
    CUSTOM_PROBLEM_CODE_THRESHOLD,
    AutoRepair,
    AutoRepairPolicy,
    Finding,
    ProblemCode,
    Severity,
    ValidationResults,
)
from .header import HeaderValidator
from .individual import IndividualValidator
from .multimedia import MultimediaValidator
from .note import NoteValidator
from .repository import RepositoryValidator
from .source import SourceValidator
from .submission import SubmissionValidator
from .submitter import SubmitterValidator

logger = logging.getLogger("gedline.validation")

CustomRule = Callable[["Validator"], None]


class Validator:
    """
    Validates a Gedcom record graph.

    Findings go to ``results``, which is cleared at the start of every pass.
    The record graph is only changed when ``auto_repair_policy`` approves a
    specific finding. The default policy approves nothing.
    """

    def __init__(
        self,
        gedcom: Gedcom,
        auto_repair_policy: AutoRepairPolicy | None = AUTO_REPAIR_NONE,
        custom_rules: list[CustomRule] | None = None,
    ):
        if gedcom is None:
            raise ValueError("gedcom is a required argument")
        self.gedcom = gedcom
        self.auto_repair_policy = auto_repair_policy
        self.custom_rules: list[CustomRule] = list(custom_rules or [])
        self.results = ValidationResults()

    def validate(self) -> ValidationResults:
        """Run every check over the whole graph."""
        gedcom = self.gedcom
        self.results.clear()

        HeaderValidator(self).validate()
        SubmissionValidator(self, gedcom.submission).validate()
        for key, submitter in list(gedcom.submitters.items()):
            SubmitterValidator(self, key, submitter).validate()
        for key, individual in list(gedcom.individuals.items()):
            IndividualValidator(self, key, individual).validate()
        for key, family in list(gedcom.families.items()):
            FamilyValidator(self, key, family).validate()
        for key, m in list(gedcom.multimedia.items()):
            MultimediaValidator(self, key, m).validate()
        for key, note in list(gedcom.notes.items()):
            NoteValidator(self, key, note).validate()
        for key, repository in list(gedcom.repositories.items()):
            RepositoryValidator(self, key, repository).validate()
        for key, source in list(gedcom.sources.items()):
            SourceValidator(self, key, source).validate()

        if gedcom.trailer is None:
            finding = self.new_finding(gedcom, Severity.ERROR, ProblemCode.MISSING_REQUIRED_VALUE, "trailer")
            self.repair(finding, gedcom, lambda: setattr(gedcom, "trailer", Trailer()))

        for rule in self.custom_rules:
            rule(self)

        repaired = sum(1 for f in self.results if f.repaired)
        logger.info(f"Validation complete: {len(self.results)} finding(s), {repaired} repaired")
        return self.results

    def new_finding(
        self,
        item_of_concern: Any,
        severity: Severity,
        problem_code: ProblemCode,
        field_name_of_concern: str | None = None,
    ) -> Finding:
        """
        Create a finding and add it to the results.

        Args:
            item_of_concern: the record with the problem. Required.
            severity: the severity. Required.
            problem_code: one of the built-in problem codes. Required.
            field_name_of_concern: optional; must name a field of the item's model

        Returns:
            the finding just created, for attaching related items or repairs
        """
        if item_of_concern is None:
            raise ValueError("item_of_concern is a required argument.")
        if severity is None:
            raise ValueError("severity is a required argument.")
        if problem_code is None:
            raise ValueError("problem_code is a required argument.")
        _check_field_name(item_of_concern, field_name_of_concern)
        finding = Finding(
            item_of_concern,
            severity,
            problem_code.code,
            problem_code.description,
            field_name_of_concern,
        )
        self.results.add(finding)
        logger.debug(f"New finding: {finding!r}")
        return finding

    def new_custom_finding(
        self,
        item_of_concern: Any,
        severity: Severity,
        problem_code: int,
        problem_description: str,
        field_name_of_concern: str | None = None,
    ) -> Finding:
        """Create a finding for a caller-defined rule. Codes must be 1000 or higher."""
        if item_of_concern is None:
            raise ValueError("item_of_concern is a required argument.")
        if problem_code is None or problem_code < CUSTOM_PROBLEM_CODE_THRESHOLD:
            raise ProblemCodeError(
                f"Custom problem codes must be {CUSTOM_PROBLEM_CODE_THRESHOLD} or higher - received {problem_code}"
            )
        _check_field_name(item_of_concern, field_name_of_concern)
        finding = Finding(item_of_concern, severity, problem_code, problem_description, field_name_of_concern)
        self.results.add(finding)
        return finding

    def may_repair(self, finding: Finding) -> bool:
        """Ask the installed auto-repair policy whether this finding may be repaired."""
        if self.auto_repair_policy is None:
            return False
        return bool(self.auto_repair_policy(finding))

    def repair(self, finding: Finding, record: Any, fix: Callable[[], None]) -> bool:
        """
        Apply ``fix`` to ``record`` if the policy allows it, recording
        before/after snapshots on the finding. Returns True if repaired.
        """
        if not self.may_repair(finding):
            return False
        before = record.model_copy(deep=True)
        fix()
        finding.add_repair(AutoRepair(before=before, after=record.model_copy(deep=True)))
        logger.info(f"Auto-repaired {type(record).__name__}.{finding.field_name_of_concern}: "
                    f"{finding.problem_description}")
        return True

    def __repr__(self) -> str:
        return f"Validator [results={len(self.results)} finding(s), autoRepairPolicy={self.auto_repair_policy!r}]"


def _check_field_name(item: Any, field_name: str | None) -> None:
    if field_name is None:
        return
    fields = getattr(type(item), "model_fields", None)
    if fields is not None and field_name not in fields:
        raise ValueError(f"{type(item).__name__} has no field named '{field_name}'")
