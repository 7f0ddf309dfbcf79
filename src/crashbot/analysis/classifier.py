"""Crash classification pipeline.

Hierarchy:
1. Ask Claude (when an API key is configured)
2. Fall back to the local rule table
"""

import logging
from typing import List, Optional, Sequence

from ..exceptions import ClassificationFailed, InvalidCrashLog, StrategyError
from .claude import ClaudeStrategy
from .models import ClassificationResult
from .rules import LocalRuleStrategy, RuleSet, load_rules
from .strategy import ClassificationStrategy

logger = logging.getLogger(__name__)


class Classifier:
    """Runs strategies in order and returns the first successful result."""

    def __init__(self, strategies: Sequence[ClassificationStrategy]):
        if not strategies:
            raise ValueError("Classifier needs at least one strategy")
        self.strategies: List[ClassificationStrategy] = list(strategies)

    @property
    def strategy_names(self) -> List[str]:
        return [s.name for s in self.strategies]

    async def classify(self, log_text: str) -> ClassificationResult:
        """Classify a crash log.

        Args:
            log_text: Raw crash log contents

        Returns:
            ClassificationResult from the first strategy that succeeded

        Raises:
            InvalidCrashLog: If log_text is missing or blank
            ClassificationFailed: If every strategy failed
        """
        if not isinstance(log_text, str) or not log_text.strip():
            raise InvalidCrashLog("No crash log provided")

        errors = []
        for strategy in self.strategies:
            try:
                result = await strategy.classify(log_text)
            except StrategyError as e:
                logger.warning(f"Strategy '{strategy.name}' failed, trying next: {e}")
                errors.append((strategy.name, e))
                continue

            logger.info(
                f"Classified crash via {strategy.name}: [{result.category.value}] {result.cause}"
            )
            return result

        raise ClassificationFailed(errors)


def build_classifier(config, rules: Optional[RuleSet] = None) -> Classifier:
    """Build the default pipeline: Claude first, local rules as fallback."""
    if rules is None:
        rules = load_rules(config.rules_file)

    strategies: List[ClassificationStrategy] = []
    claude = ClaudeStrategy.from_config(config)
    if claude.available:
        strategies.append(claude)
    else:
        logger.warning("Claude API key not configured, using local rules only")
    strategies.append(LocalRuleStrategy(rules))

    return Classifier(strategies)
