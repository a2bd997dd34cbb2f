"""Findings produced by a validation pass, and the policies that gate auto-repair."""

from enum import Enum, IntEnum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict

from config import get_settings
from gedcom_errors import ProblemCodeError

# Codes below this value belong to the built-in rules; custom rules use this value and up
CUSTOM_PROBLEM_CODE_THRESHOLD = 1000


class Severity(IntEnum):
    """How bad a finding is. Ordered, so policies can compare severities."""
    INFO = 1
    WARNING = 2
    ERROR = 3


class ProblemCode(Enum):
    """Problems the built-in rules can report. Each carries a fixed code and description."""
    CROSS_REFERENCE_NOT_FOUND = (0, "Cross-referenced item could not be found in the GEDCOM")
    DUPLICATE_VALUE = (1, "Duplicate value")
    ILLEGAL_VALUE = (2, "Value supplied is not allowed")
    MISSING_REQUIRED_VALUE = (3, "A required value is missing")
    XREF_MISMATCH = (4, "Cross-reference id does not match the key the record is stored under")

    def __init__(self, code: int, description: str):
        self.code = code
        self.description = description


class AutoRepair(BaseModel):
    """Snapshots of a record taken just before and just after an automatic repair."""
    model_config = ConfigDict(frozen=True)

    before: Any
    after: Any


class Finding:
    """
    Something of interest found by the validator.

    Findings are created by Validator.new_finding; outside the validation
    package they are read-only, except that a finding can be given a custom
    problem code (at or above CUSTOM_PROBLEM_CODE_THRESHOLD) and description.
    """

    def __init__(
        self,
        item_of_concern: Any,
        severity: Severity,
        problem_code: int,
        problem_description: str | None,
        field_name_of_concern: str | None = None,
    ):
        if item_of_concern is None:
            raise ValueError("item_of_concern is a required argument.")
        if severity is None:
            raise ValueError("severity is a required argument.")
        if problem_code is None:
            raise ValueError("problem_code is a required argument.")
        collections = get_settings().collection_initialization
        self._item_of_concern = item_of_concern
        self._severity = severity
        self._problem_code = problem_code
        self._problem_description = problem_description
        self._field_name_of_concern = field_name_of_concern
        self._related_items: list | None = [] if collections else None
        self._repairs: list[AutoRepair] | None = [] if collections else None

    @property
    def item_of_concern(self) -> Any:
        return self._item_of_concern

    @property
    def field_name_of_concern(self) -> str | None:
        return self._field_name_of_concern

    @property
    def field_value(self) -> Any:
        """Current value of the field of concern on the item, if a field was named."""
        if self._field_name_of_concern is None:
            return None
        return getattr(self._item_of_concern, self._field_name_of_concern)

    @property
    def severity(self) -> Severity:
        return self._severity

    @property
    def problem_code(self) -> int:
        return self._problem_code

    @problem_code.setter
    def problem_code(self, code: int) -> None:
        if code < 0:
            raise ProblemCodeError(f"Problem code must be a positive integer - received {code}")
        if code < CUSTOM_PROBLEM_CODE_THRESHOLD:
            raise ProblemCodeError(
                f"Values under {CUSTOM_PROBLEM_CODE_THRESHOLD} are reserved for built-in rules - received {code}"
            )
        self._problem_code = code

    @property
    def problem_description(self) -> str | None:
        return self._problem_description

    @problem_description.setter
    def problem_description(self, description: str) -> None:
        if self._problem_code < CUSTOM_PROBLEM_CODE_THRESHOLD:
            raise ProblemCodeError(
                f"Cannot set descriptions for problems with codes under {CUSTOM_PROBLEM_CODE_THRESHOLD}, "
                "which are reserved for built-in rules"
            )
        self._problem_description = description

    @property
    def related_items(self) -> list | None:
        return self._related_items

    @property
    def repairs(self) -> list[AutoRepair] | None:
        return self._repairs

    @property
    def repaired(self) -> bool:
        return bool(self._repairs)

    def add_related_item(self, item: Any) -> None:
        if self._related_items is None:
            self._related_items = []
        self._related_items.append(item)

    def add_repair(self, repair: AutoRepair) -> None:
        if self._repairs is None:
            self._repairs = []
        self._repairs.append(repair)

    def to_dict(self) -> dict[str, Any]:
        """Summary of the finding for JSON responses and logs."""
        item = self._item_of_concern
        return {
            "severity": self._severity.name,
            "problemCode": self._problem_code,
            "problemDescription": self._problem_description,
            "recordType": type(item).__name__,
            "xref": getattr(item, "xref", None),
            "field": self._field_name_of_concern,
            "relatedItemCount": len(self._related_items or []),
            "repairCount": len(self._repairs or []),
        }

    def __repr__(self) -> str:
        parts = []
        if self._field_name_of_concern is not None:
            parts.append(f"fieldNameOfConcern={self._field_name_of_concern}")
        parts.append(f"itemOfConcern={type(self._item_of_concern).__name__}")
        parts.append(f"severity={self._severity.name}")
        parts.append(f"problemCode={self._problem_code}")
        if self._problem_description is not None:
            parts.append(f"problemDescription={self._problem_description}")
        if self._repairs:
            parts.append(f"repairs={len(self._repairs)}")
        return f"Finding [{', '.join(parts)}]"


class ValidationResults:
    """Ordered store of the findings from one validation pass."""

    def __init__(self):
        self._findings: list[Finding] = []

    def add(self, finding: Finding) -> None:
        self._findings.append(finding)

    def clear(self) -> None:
        self._findings.clear()

    @property
    def findings(self) -> list[Finding]:
        return list(self._findings)

    def by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self._findings if f.severity == severity]

    def by_problem(self, problem: ProblemCode | int) -> list[Finding]:
        code = problem.code if isinstance(problem, ProblemCode) else problem
        return [f for f in self._findings if f.problem_code == code]

    def for_item(self, item: Any) -> list[Finding]:
        return [f for f in self._findings if f.item_of_concern is item]

    def __iter__(self):
        return iter(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    def __repr__(self) -> str:
        return f"ValidationResults({self._findings!r})"


# ============================================================================
# Auto-repair policies
# ============================================================================

AutoRepairPolicy = Callable[[Finding], bool]


def _repair_everything(finding: Finding) -> bool:
    return True


def _repair_nothing(finding: Finding) -> bool:
    return False


AUTO_REPAIR_ALL: AutoRepairPolicy = _repair_everything
AUTO_REPAIR_NONE: AutoRepairPolicy = _repair_nothing


def repair_at_or_above(severity: Severity) -> AutoRepairPolicy:
    """Policy that allows repairs for findings at least as severe as ``severity``."""
    def policy(finding: Finding) -> bool:
        return finding.severity >= severity
    return policy
