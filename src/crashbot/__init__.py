"""CrashBot - FiveM crash log triage.

This package classifies uploaded crash logs and keeps a deduplicated
ledger of server resources that keep crashing players.

Usage:
    from crashbot import build_classifier, IssueLedger, MemoryIssueStore, config

    classifier = build_classifier(config)
    ledger = IssueLedger(MemoryIssueStore())

    result = await classifier.classify(crash_log_text)
    if result.should_report:
        await ledger.record_classification(result)

    # Staff view, most reported first
    issues = await ledger.prioritized_issues()
"""

from .analysis import (
    ClassificationResult,
    Classifier,
    ClaudeStrategy,
    CrashType,
    LocalRuleStrategy,
    Severity,
    build_classifier,
    load_rules,
)
from .config import CrashbotConfig, config
from .database import close_pool, get_pool
from .exceptions import (
    ClassificationFailed,
    CrashbotError,
    InvalidCrashLog,
    IssueNotFound,
    PersistenceError,
    StrategyError,
)
from .issues import IssueLedger, IssueRecord, IssueStatus, MemoryIssueStore, PostgresIssueStore

__version__ = "1.0.0"

__all__ = [
    # Analysis
    "ClassificationResult",
    "Classifier",
    "ClaudeStrategy",
    "CrashType",
    "LocalRuleStrategy",
    "Severity",
    "build_classifier",
    "load_rules",
    # Issues
    "IssueLedger",
    "IssueRecord",
    "IssueStatus",
    "MemoryIssueStore",
    "PostgresIssueStore",
    # Config
    "CrashbotConfig",
    "config",
    # Database
    "get_pool",
    "close_pool",
    # Errors
    "CrashbotError",
    "ClassificationFailed",
    "InvalidCrashLog",
    "IssueNotFound",
    "PersistenceError",
    "StrategyError",
]
