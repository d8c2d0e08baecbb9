"""
Console sink: writes every entry to stdout or stderr depending on severity.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import IO, Any

from relaylog.errors import format_traceback
from relaylog.formatters import ConsoleFormatter
from relaylog.types import LogEntry, Severity, level_value

from .base import Sink

_STDERR_SEVERITIES = {
    Severity.WARN.value,
    Severity.ERROR.value,
    Severity.ERROR_BACKGROUND.value,
}

_LEVEL_LABELS = {
    Severity.ERROR_BACKGROUND.value: "ERROR-BG",
}


def _render_arg(arg: Any) -> str:
    if isinstance(arg, BaseException):
        tb = format_traceback(arg)
        if tb:
            # the traceback already ends with "Type: message"
            return f"\n{tb.rstrip()}"
        return f"{type(arg).__name__}: {arg}"
    return str(arg)


class ConsoleSink(Sink):
    """Standard I/O sink.

    Args:
        app_name: Shown in the logger column
        stdout: Stream for debug/verbose/info/log (default: sys.stdout at send time)
        stderr: Stream for warn/error/error-background (default: sys.stderr at send time)
        use_color: Force ANSI colors on or off; defaults to the stream's isatty()
    """

    name = "console"

    def __init__(
        self,
        app_name: str | None = None,
        *,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
        use_color: bool | None = None,
    ):
        self._app_name = app_name or "relaylog"
        self._stdout = stdout
        self._stderr = stderr
        self._use_color = use_color

    def stream_for(self, severity: Severity | str) -> IO[str]:
        if level_value(severity) in _STDERR_SEVERITIES:
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    def render(self, entry: LogEntry, *, use_color: bool = False) -> str:
        level = level_value(entry.severity)
        parts = [str(entry.message)] if entry.message is not None else []
        parts.extend(_render_arg(arg) for arg in entry.args)
        event = {
            "level": _LEVEL_LABELS.get(level, level),
            "message": " ".join(parts),
            "logger": self._app_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return ConsoleFormatter.format(event, use_color=use_color)

    async def send(self, entry: LogEntry) -> None:
        stream = self.stream_for(entry.severity)
        use_color = self._use_color
        if use_color is None:
            use_color = bool(getattr(stream, "isatty", lambda: False)())
        stream.write(self.render(entry, use_color=use_color) + "\n")
        stream.flush()
