"""Common interface for classification strategies."""

from abc import ABC, abstractmethod

from .models import ClassificationResult


class ClassificationStrategy(ABC):
    """Maps raw crash log text to a ClassificationResult.

    Implementations raise StrategyError when they cannot produce a result,
    which lets the Classifier move on to the next strategy.
    """

    name: str = "strategy"

    @abstractmethod
    async def classify(self, log_text: str) -> ClassificationResult:
        """Classify a crash log.

        Raises:
            StrategyError: If the strategy cannot classify this log
        """
