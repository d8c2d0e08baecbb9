"""
Local diagnostic side-channel.

Everything relaylog has to say about itself (misuse, transport failures,
remote delivery errors) goes through structlog loggers from `get_logger`.
By default the host application's structlog configuration applies;
`configure_diagnostics` installs a standalone pipeline when there is none.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from .config.diagnostics import DiagnosticsSettings, LogFormat
from .formatters import ConsoleFormatter, orjson_dumps


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance."""
    return structlog.get_logger(_name=name or "relaylog")


# =============================================================================
# Structlog Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log event."""
    event_dict["logger"] = event_dict.pop("_name", "relaylog")
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


class _StreamRenderer:
    """Final processor: renders the event as a console line or a JSON line."""

    def __init__(self, fmt: LogFormat, stream: IO[str]):
        self._fmt = fmt
        self._stream = stream

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        if self._fmt == LogFormat.JSON:
            return orjson_dumps(event_dict, default=str)
        use_color = bool(getattr(self._stream, "isatty", lambda: False)())
        return ConsoleFormatter.format(event_dict, use_color=use_color)


def configure_diagnostics(
    *,
    level: str | None = None,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    settings: DiagnosticsSettings | None = None,
) -> None:
    """
    Install a structlog pipeline for relaylog diagnostics.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Output format (console, json)
        stream: Destination stream (default: stderr)
        settings: Defaults for anything not passed explicitly
    """
    settings = settings or DiagnosticsSettings()
    level_name = (level or settings.level.value).upper()
    log_format = LogFormat(fmt.lower()) if fmt else settings.format
    stream = stream or sys.stderr

    ConsoleFormatter.configure(settings)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            add_timestamp,
            add_logger_name,
            rename_event_key,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _StreamRenderer(log_format, stream),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
