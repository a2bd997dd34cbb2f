from .findings import (
    AUTO_REPAIR_ALL,
    AUTO_REPAIR_NONE,
    CUSTOM_PROBLEM_CODE_THRESHOLD,
    AutoRepair,
    AutoRepairPolicy,
    Finding,
    ProblemCode,
    Severity,
    ValidationResults,
    repair_at_or_above,
)
from .validator import Validator

__all__ = [
    "Validator",
    "Finding",
    "ValidationResults",
    "Severity",
    "ProblemCode",
    "CUSTOM_PROBLEM_CODE_THRESHOLD",
    # Auto-repair
    "AutoRepair",
    "AutoRepairPolicy",
    "AUTO_REPAIR_ALL",
    "AUTO_REPAIR_NONE",
    "repair_at_or_above",
]
