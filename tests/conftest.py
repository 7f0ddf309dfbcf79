"""Shared fixtures for crashbot tests."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from crashbot.analysis import ClassificationStrategy, LocalRuleStrategy, load_rules
from crashbot.exceptions import StrategyError
from crashbot.issues import IssueLedger, MemoryIssueStore


class FakeMessages:
    """Stands in for AsyncAnthropic().messages."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


class FakeClaudeClient:
    def __init__(self, text=None, error=None):
        self.messages = FakeMessages(text=text, error=error)


class FailingStrategy(ClassificationStrategy):
    """Always raises StrategyError."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    async def classify(self, log_text):
        self.calls += 1
        raise StrategyError("upstream unavailable")


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class RecordingNotifier:
    def __init__(self):
        self.created = []

    async def issue_created(self, record):
        self.created.append(record.resource_name)
        return True


@pytest.fixture(scope="session")
def rules():
    return load_rules()


@pytest.fixture
def local_strategy(rules):
    return LocalRuleStrategy(rules)


@pytest.fixture
def fake_claude():
    """Factory for fake Anthropic clients."""
    return FakeClaudeClient


@pytest.fixture
def failing_strategy():
    return FailingStrategy()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ledger(clock, notifier):
    return IssueLedger(MemoryIssueStore(), notifier=notifier, clock=clock)
