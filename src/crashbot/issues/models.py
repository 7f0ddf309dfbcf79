"""Data models for the issue ledger."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class IssueStatus(str, Enum):
    """Issue lifecycle states."""
    PENDING = "pending"
    FIXED = "fixed"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class IssueRecord:
    """One tracked resource problem."""
    resource_name: str
    cause: str = ""
    description: str = ""
    occurrence_count: int = 1
    status: IssueStatus = IssueStatus.PENDING
    created_at: Optional[datetime] = None
    last_reported_at: Optional[datetime] = None
    fixed_at: Optional[datetime] = None
    fixed_by: Optional[str] = None

    def __post_init__(self):
        self.status = IssueStatus(self.status)

    @property
    def is_fixed(self) -> bool:
        return self.status == IssueStatus.FIXED

    def copy(self) -> "IssueRecord":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_name": self.resource_name,
            "cause": self.cause,
            "description": self.description,
            "occurrence_count": self.occurrence_count,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "last_reported_at": _iso(self.last_reported_at),
            "fixed_at": _iso(self.fixed_at),
            "fixed_by": self.fixed_by,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "IssueRecord":
        """Build a record from a crash_reports row."""
        return cls(
            resource_name=row["resource_name"],
            cause=row["cause"],
            description=row["description"],
            occurrence_count=row["occurrence_count"],
            status=row["status"],
            created_at=row["created_at"],
            last_reported_at=row["last_reported_at"],
            fixed_at=row["fixed_at"],
            fixed_by=row["fixed_by"],
        )


@dataclass
class ReportOutcome:
    """Result of reporting an issue."""
    record: IssueRecord
    is_new: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"is_new": self.is_new, "issue": self.record.to_dict()}
