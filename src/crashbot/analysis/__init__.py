"""Crash analysis module.

Provides the classifier pipeline and its two strategies.
"""

from .classifier import Classifier, build_classifier
from .claude import ClaudeStrategy, extract_json_object, parse_analysis
from .models import ClassificationResult, CrashType, Severity
from .rules import LocalRuleStrategy, Rule, RuleSet, extract_resource_name, load_rules
from .strategy import ClassificationStrategy

__all__ = [
    "Classifier",
    "build_classifier",
    "ClaudeStrategy",
    "extract_json_object",
    "parse_analysis",
    "ClassificationResult",
    "CrashType",
    "Severity",
    "LocalRuleStrategy",
    "Rule",
    "RuleSet",
    "extract_resource_name",
    "load_rules",
    "ClassificationStrategy",
]
