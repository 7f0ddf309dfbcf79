"""Issue tracking module.

Provides the issue ledger and its storage backends.
"""

from .ledger import IssueLedger
from .models import IssueRecord, IssueStatus, ReportOutcome
from .store import IssueStore, MemoryIssueStore, PostgresIssueStore, create_store

__all__ = [
    "IssueLedger",
    "IssueRecord",
    "IssueStatus",
    "ReportOutcome",
    "IssueStore",
    "MemoryIssueStore",
    "PostgresIssueStore",
    "create_store",
]
