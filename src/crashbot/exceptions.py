"""Exceptions raised by crashbot."""


class CrashbotError(Exception):
    """Base class for crashbot errors."""


class InvalidCrashLog(CrashbotError, ValueError):
    """The caller supplied no usable crash log text."""


class StrategyError(CrashbotError):
    """A classification strategy could not produce a result."""


class StrategyUnavailable(StrategyError):
    """The strategy is not configured (e.g. no API key)."""


class ClassificationFailed(CrashbotError):
    """Every strategy in the pipeline failed."""

    def __init__(self, errors):
        self.errors = list(errors)
        detail = "; ".join(f"{name}: {err}" for name, err in self.errors)
        super().__init__(f"All classification strategies failed ({detail})")


class PersistenceError(CrashbotError):
    """Reading or writing the issue store failed."""


class IssueNotFound(CrashbotError, KeyError):
    """No issue is recorded for the given resource name."""

    def __init__(self, resource_name: str):
        self.resource_name = resource_name
        super().__init__(resource_name)

    def __str__(self):
        return f"No issue recorded for resource '{self.resource_name}'"
