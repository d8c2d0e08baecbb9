from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from relaylog.sinks import Sink, SlackWebhookClient
from relaylog.types import LogEntry, Severity


class RecordingSink(Sink):
    """Accepts every severity and keeps the entries it receives."""

    def __init__(self, name: str = "recording", handles: set[str] | None = None):
        self.name = name
        self.handles = handles
        self.entries: list[LogEntry] = []

    def should_handle(self, severity: Severity | str) -> bool:
        if self.handles is None:
            return True
        value = severity.value if isinstance(severity, Severity) else severity
        return value in self.handles

    async def send(self, entry: LogEntry) -> None:
        self.entries.append(entry)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Every test starts in development unless it says otherwise."""
    monkeypatch.delenv("RELAYLOG_ENV", raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def slack_client() -> MagicMock:
    client = MagicMock(spec=SlackWebhookClient)
    client.post = AsyncMock(return_value=None)
    return client


@pytest.fixture
def make_sink():
    """Factory for extra recording sinks."""
    return RecordingSink
