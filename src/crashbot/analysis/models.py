"""Data models for crash log analysis."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class CrashType(str, Enum):
    """Where a crash originated."""
    CLIENT = "client"
    RESOURCE = "resource"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Crash severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Used when a strategy has no opinion on severity
DEFAULT_SEVERITY = Severity.MEDIUM

UNKNOWN_CAUSE = "Unknown Crash"
UNKNOWN_DESCRIPTION = "The crash log doesn't match any known patterns."
UNKNOWN_SOLUTIONS = (
    "Clear your FiveM cache (AppData/Local/FiveM/FiveM.app/cache)",
    "Verify your GTA V game files",
    "Update your graphics drivers",
    "Try restarting your computer",
    "If the issue persists, contact server staff with this crash log",
)

ANALYSIS_ERROR_CAUSE = "Analysis Error"
ANALYSIS_ERROR_DESCRIPTION = (
    "CrashBot encountered an issue analyzing your crash log. "
    "The log may be in an unexpected format."
)
ANALYSIS_ERROR_SOLUTIONS = (
    "Try uploading a different crash log file",
    "Make sure the file is a valid FiveM crash log",
    "Contact server staff if the issue persists",
)


def _coerce_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


@dataclass
class ClassificationResult:
    """Structured diagnosis of a single crash log."""
    category: CrashType
    cause: str
    description: str
    solutions: List[str]
    resource_name: Optional[str] = None
    severity: Severity = DEFAULT_SEVERITY
    auto_reported: bool = False
    raw_match: Optional[str] = None
    raw_response: Optional[str] = None

    def __post_init__(self):
        self.category = CrashType(self.category)
        self.severity = Severity(self.severity)
        self.solutions = list(self.solutions)
        if not self.solutions:
            raise ValueError("solutions must not be empty")
        if self.resource_name is not None and self.category != CrashType.RESOURCE:
            raise ValueError(
                f"resource_name is only valid for resource crashes, got {self.category.value}"
            )

    @property
    def should_report(self) -> bool:
        """True when this result names a resource the ledger should track."""
        return self.category == CrashType.RESOURCE and bool(self.resource_name)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation returned by the analyze endpoint."""
        data = {
            "crash_type": self.category.value,
            "resource_name": self.resource_name,
            "cause": self.cause,
            "description": self.description,
            "solutions": list(self.solutions),
            "severity": self.severity.value,
            "auto_reported": self.auto_reported,
        }
        if self.raw_match is not None:
            data["raw_match"] = self.raw_match
        if self.raw_response is not None:
            data["raw_response"] = self.raw_response
        return data

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ClassificationResult":
        """Build a result from an untrusted model payload.

        Fields the model got wrong are replaced with safe defaults rather
        than rejected, so a partially valid answer is still usable.
        """
        category = _coerce_enum(CrashType, payload.get("crash_type"), CrashType.UNKNOWN)

        resource_name = payload.get("resource_name")
        if not isinstance(resource_name, str) or not resource_name.strip():
            resource_name = None
        elif category != CrashType.RESOURCE:
            resource_name = None
        else:
            resource_name = resource_name.strip()

        raw_solutions = payload.get("solutions")
        solutions = []
        if isinstance(raw_solutions, list):
            solutions = [s.strip() for s in raw_solutions if isinstance(s, str) and s.strip()]
        if not solutions:
            solutions = list(UNKNOWN_SOLUTIONS)

        cause = payload.get("cause")
        if not isinstance(cause, str) or not cause.strip():
            cause = UNKNOWN_CAUSE if category == CrashType.UNKNOWN else "Unidentified Crash Cause"

        description = payload.get("description")
        if not isinstance(description, str):
            description = ""

        # Only a real JSON boolean counts; "false" is truthy
        auto_reported = payload.get("auto_reported")
        if not isinstance(auto_reported, bool):
            auto_reported = False

        return cls(
            category=category,
            resource_name=resource_name,
            cause=cause.strip(),
            description=description.strip(),
            solutions=solutions,
            severity=_coerce_enum(Severity, payload.get("severity"), DEFAULT_SEVERITY),
            auto_reported=auto_reported,
        )

    @classmethod
    def unknown_crash(cls) -> "ClassificationResult":
        """Default result when no rule recognises the log."""
        return cls(
            category=CrashType.UNKNOWN,
            cause=UNKNOWN_CAUSE,
            description=UNKNOWN_DESCRIPTION,
            solutions=list(UNKNOWN_SOLUTIONS),
        )

    @classmethod
    def analysis_error(cls, raw_response: Optional[str] = None) -> "ClassificationResult":
        """Result used when the model reply could not be parsed."""
        return cls(
            category=CrashType.UNKNOWN,
            cause=ANALYSIS_ERROR_CAUSE,
            description=ANALYSIS_ERROR_DESCRIPTION,
            solutions=list(ANALYSIS_ERROR_SOLUTIONS),
            severity=Severity.LOW,
            raw_response=raw_response,
        )
