"""
Core value types shared by the facade and every sink.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class Severity(str, Enum):
    """Severity of a log call. Gates sink eligibility, never a threshold."""

    LOG = "log"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    ERROR_BACKGROUND = "error-background"
    DEBUG = "debug"
    VERBOSE = "verbose"


class SlackLevel(str, Enum):
    """Routing levels understood by the Slack sink (channel table keys)."""

    VERBOSE = "verbose"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    ERROR_BACKGROUND = "error-bg"
    ACTION = "action"
    BILLING = "billing"
    SUSPICIOUS = "suspicious"


def level_value(level: Any) -> str:
    """Plain string value of a Severity / SlackLevel / str."""
    if isinstance(level, Enum):
        return str(level.value)
    return str(level)


@dataclass(frozen=True)
class LogEntry:
    """A single log call, built fresh per call and never mutated afterwards."""

    severity: Severity | str
    message: Any
    args: tuple[Any, ...] = ()
    fields: Mapping[str, Any] = field(default_factory=dict)
    error: Any = None
    custom_destination: str | None = None
