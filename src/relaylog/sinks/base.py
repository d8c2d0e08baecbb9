"""
Sink abstraction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from relaylog.types import LogEntry, Severity


class Sink(ABC):
    """Abstract base class for log sinks.

    A sink decides which severities it accepts (`should_handle`) and delivers
    entries (`send`). `send` may be a coroutine function or a plain function.
    """

    name: str = "base"

    def should_handle(self, severity: Severity | str) -> bool:
        return True

    @abstractmethod
    async def send(self, entry: LogEntry) -> Any:
        """Deliver a log entry."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
