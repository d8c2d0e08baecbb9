"""
Console line rendering shared by the console sink and relaylog's own diagnostics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

import orjson

from .config.diagnostics import DiagnosticsSettings


def orjson_dumps(v: Any, *, default: Any = None) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(v, default=default, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC).decode()


class ConsoleFormatter:
    """Renders aligned `time | LEVEL | logger | message key=value` lines."""

    _RESET = "\x1b[0m"
    _DIM = "\x1b[90m"
    _LOGGER_COLOR = "\x1b[35m"
    _LEVEL_COLORS = {
        "DEBUG": "\x1b[36m",
        "VERBOSE": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARN": "\x1b[33m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "ERROR-BG": "\x1b[31m",
        "CRITICAL": "\x1b[1;31m",
    }

    EXCLUDED_KEYS = {"level", "message", "logger", "timestamp"}
    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
    LEVEL_WIDTH = 8
    LOGGER_WIDTH = 24
    SEPARATOR = " | "

    @classmethod
    def configure(cls, settings: DiagnosticsSettings) -> None:
        cls.TIMESTAMP_FORMAT = settings.console_timestamp_format
        cls.LEVEL_WIDTH = settings.console_level_width
        cls.LOGGER_WIDTH = settings.console_logger_width
        cls.SEPARATOR = settings.console_separator

    @staticmethod
    def _fit(text: str, width: int) -> str:
        # keep the tail: logger names are most specific at the end
        if 3 < width < len(text):
            text = "..." + text[-(width - 3) :]
        return f"{text:>{width}}"

    @classmethod
    def _timestamp(cls, raw: Any) -> str:
        try:
            moment = datetime.fromisoformat(str(raw).replace("Z", "+00:00")).astimezone()
        except ValueError:
            moment = datetime.now()
        return moment.strftime(cls.TIMESTAMP_FORMAT)

    @staticmethod
    def _paint(text: str, color: str | None, use_color: bool) -> str:
        return f"{color}{text}{ConsoleFormatter._RESET}" if use_color and color else text

    @classmethod
    def format(cls, event_dict: Mapping[str, Any], *, use_color: bool = True) -> str:
        """Format an event dict into an aligned line."""
        level = str(event_dict.get("level", "info")).upper()
        message = str(event_dict.get("message", ""))

        extras = [
            f"{key}={cls._paint(str(value), cls._DIM, use_color)}"
            for key, value in event_dict.items()
            if key not in cls.EXCLUDED_KEYS and value is not None
        ]
        if extras:
            message = " ".join([message, *extras])

        return cls.SEPARATOR.join(
            [
                cls._paint(cls._timestamp(event_dict.get("timestamp")), cls._DIM, use_color),
                cls._paint(cls._fit(level, cls.LEVEL_WIDTH), cls._LEVEL_COLORS.get(level), use_color),
                cls._paint(
                    cls._fit(str(event_dict.get("logger", "relaylog")), cls.LOGGER_WIDTH),
                    cls._LOGGER_COLOR,
                    use_color,
                ),
                message,
            ]
        )
