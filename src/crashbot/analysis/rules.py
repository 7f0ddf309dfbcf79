"""Local crash classification from an ordered rule list.

Rules are loaded from YAML knowledge files and evaluated in file order.
The first rule whose pattern matches the log decides the result; there is
no scoring between rules.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import yaml

from .models import ClassificationResult, CrashType, DEFAULT_SEVERITY
from .strategy import ClassificationStrategy

logger = logging.getLogger(__name__)

KNOWLEDGE_DIR = Path(__file__).parent / "knowledge"
DEFAULT_RULES_FILE = KNOWLEDGE_DIR / "fivem.yaml"

# Tried in order; the first hit names the resource
RESOURCE_NAME_PATTERNS = (
    re.compile(r"\[(\w+[-_]?\w*)\]", re.IGNORECASE),
    re.compile(r"resources?[/\\](\w+[-_]?\w*)", re.IGNORECASE),
    re.compile(r"(\w+[-_]?\w*)\.lua", re.IGNORECASE),
)


@dataclass(frozen=True)
class Rule:
    """A crash signature and the diagnosis it maps to."""
    name: str
    pattern: re.Pattern
    category: CrashType
    cause: str
    description: str
    solutions: Tuple[str, ...]
    extract_resource: bool = False

    def __post_init__(self):
        if not self.solutions:
            raise ValueError(f"Rule '{self.name}' has no solutions")
        if self.extract_resource and self.category != CrashType.RESOURCE:
            raise ValueError(f"Rule '{self.name}' extracts a resource but is not a resource rule")

    @property
    def wants_resource_name(self) -> bool:
        return self.extract_resource or self.category == CrashType.RESOURCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        """Build a rule from one entry of a knowledge file."""
        name = data.get("name") or data.get("cause", "unnamed")
        try:
            pattern = re.compile(data["pattern"], re.IGNORECASE)
            category = CrashType(data["category"])
        except KeyError as e:
            raise ValueError(f"Rule '{name}' is missing field {e}") from e
        except re.error as e:
            raise ValueError(f"Rule '{name}' has an invalid pattern: {e}") from e

        return cls(
            name=name,
            pattern=pattern,
            category=category,
            cause=data.get("cause", ""),
            description=data.get("description", ""),
            solutions=tuple(data.get("solutions") or ()),
            extract_resource=bool(data.get("extract_resource", False)),
        )


@dataclass(frozen=True)
class RuleSet:
    """An immutable, ordered collection of rules."""
    name: str
    rules: Tuple[Rule, ...]

    def __iter__(self):
        return iter(self.rules)

    def __len__(self):
        return len(self.rules)

    def first_match(self, text: str) -> Optional[Tuple[Rule, re.Match]]:
        """Return the first rule matching text, with its match."""
        for rule in self.rules:
            match = rule.pattern.search(text)
            if match:
                return rule, match
        return None

    @classmethod
    def from_rules(cls, rules: Iterable[Rule], name: str = "custom") -> "RuleSet":
        return cls(name=name, rules=tuple(rules))


def load_rules(path: Union[str, Path, None] = None) -> RuleSet:
    """Load a rule set from a YAML knowledge file.

    Args:
        path: Knowledge file (defaults to the packaged FiveM rules)

    Returns:
        RuleSet in file order

    Raises:
        ValueError: If the file is malformed or a rule is invalid
    """
    path = Path(path) if path else DEFAULT_RULES_FILE

    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        raise ValueError(f"Knowledge file {path} has no 'rules' list")

    rules = tuple(Rule.from_dict(entry) for entry in data["rules"])
    rule_set = RuleSet(name=data.get("name", path.stem), rules=rules)
    logger.debug(f"Loaded {len(rule_set)} rules from {path}")
    return rule_set


def extract_resource_name(text: str) -> Optional[str]:
    """Pull a resource name out of a crash log.

    Tries a bracketed token, then a path segment under resources/, then a
    .lua filename stem.
    """
    for pattern in RESOURCE_NAME_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


class LocalRuleStrategy(ClassificationStrategy):
    """Fallback classifier that never needs the network."""

    name = "local"

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules if rules is not None else load_rules()

    def analyze(self, log_text: str) -> ClassificationResult:
        """Synchronous classification against the rule table."""
        found = self.rules.first_match(log_text)
        if not found:
            return ClassificationResult.unknown_crash()

        rule, match = found
        resource_name = None
        if rule.wants_resource_name:
            resource_name = extract_resource_name(log_text)

        logger.debug(f"Rule '{rule.name}' matched (resource: {resource_name})")

        return ClassificationResult(
            category=rule.category,
            resource_name=resource_name,
            cause=rule.cause,
            description=rule.description,
            solutions=list(rule.solutions),
            severity=DEFAULT_SEVERITY,
            auto_reported=rule.category == CrashType.RESOURCE and resource_name is not None,
            raw_match=match.group(0),
        )

    async def classify(self, log_text: str) -> ClassificationResult:
        return self.analyze(log_text)
