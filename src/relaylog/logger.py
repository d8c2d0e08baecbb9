"""
Logger facade.

`create_logger` builds a process-scoped `Logger` owning an ordered list of
sinks. Every public call builds a fresh `LogEntry`, picks the sinks whose
`should_handle` accepts its severity and hands them the entry on the
background dispatch loop. Public calls return immediately and never raise.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, TypeVar

from .config import Environment, LoggerConfig, classify
from .diagnostics import get_logger
from .dispatch import DispatchLoop
from .errors import describe_exception, is_error_like, normalize_error, should_downgrade
from .sinks import ConsoleSink, Sink, SlackSink
from .types import LogEntry, Severity, level_value

logger = get_logger("relaylog.logger")

F = TypeVar("F", bound=Callable[..., Any])

ERROR_DOWNGRADE_SUFFIX = " [error treated as warn]"
BACKGROUND_ERROR_DOWNGRADE_SUFFIX = " [background error treated as warn]"


def _pattern_matches(pattern: str, text: str) -> bool:
    try:
        return re.search(pattern, text, re.IGNORECASE) is not None
    except re.error:
        return pattern in text


def is_debug_allowed(
    enabled: bool,
    debug_filter: str | Sequence[str] | None,
    filter_text: Any,
) -> bool:
    """
    Check whether debug output is allowed for `filter_text`.

    No filter (or no filter text) allows everything once debug is enabled;
    an empty list of patterns allows nothing.
    Patterns are case-insensitive regular expressions; a pattern that is not
    valid regex syntax is matched as a plain substring.
    """
    if not enabled:
        return False
    if debug_filter is None or debug_filter == "" or not filter_text:
        return True

    text = str(filter_text)
    if isinstance(debug_filter, str):
        return _pattern_matches(debug_filter, text)
    return any(_pattern_matches(pattern, text) for pattern in debug_filter if pattern)


def _contained(method: F) -> F:
    """Report anything escaping a public call instead of raising it."""

    @functools.wraps(method)
    def wrapper(self: "Logger", *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except Exception as exc:
            logger.error("logger_call_failed", method=method.__name__, **describe_exception(exc))
            return None

    return wrapper  # type: ignore[return-value]


class Logger:
    """Logging facade. Build it with `create_logger`."""

    def __init__(
        self,
        config: LoggerConfig,
        *,
        environment: Environment,
        sinks: Sequence[Sink],
    ):
        self.config = config
        self.environment = environment
        self._sinks: list[Sink] = list(sinks)
        self._warning_patterns = tuple(config.errors_to_treat_as_warnings)
        self._loop = DispatchLoop(exit_timeout=config.slack.timeout)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _eligible(self, sink: Sink, severity: Severity) -> bool:
        try:
            return bool(sink.should_handle(severity))
        except Exception as exc:
            logger.error("transport_error", sink=getattr(sink, "name", repr(sink)), **describe_exception(exc))
            return False

    @staticmethod
    async def _deliver(sink: Sink, entry: LogEntry) -> None:
        result = sink.send(entry)
        if inspect.isawaitable(result):
            await result

    async def _fan_out(self, entry: LogEntry, sinks: list[Sink]) -> None:
        results = await asyncio.gather(
            *(self._deliver(sink, entry) for sink in sinks),
            return_exceptions=True,
        )
        for sink, result in zip(sinks, results):
            if isinstance(result, BaseException):
                logger.error(
                    "transport_error",
                    sink=getattr(sink, "name", repr(sink)),
                    **describe_exception(result),
                )

    def _dispatch(
        self,
        severity: Severity,
        message: Any,
        args: Sequence[Any] = (),
        *,
        fields: Mapping[str, Any] | None = None,
        error: Any = None,
        custom_destination: str | None = None,
    ) -> None:
        merged = dict(fields or {})
        if error is not None:
            merged.update(normalize_error(error))

        entry = LogEntry(
            severity=severity,
            message=message,
            args=tuple(args),
            fields=merged,
            error=error,
            custom_destination=custom_destination,
        )

        sinks = [sink for sink in list(self._sinks) if self._eligible(sink, severity)]
        if sinks:
            self._loop.submit(self._fan_out(entry, sinks))

    def _valid_error_args(self, method: str, args: Sequence[Any]) -> bool:
        if 1 <= len(args) <= 2:
            return True
        logger.warning(
            "error_arity_violation",
            method=method,
            received=len(args),
            hint=f"{method}() takes 1-2 arguments: message (required) and error (optional)",
            stack_info=True,
        )
        return False

    def _error(self, method: str, severity: Severity, args: Sequence[Any]) -> None:
        if not self._valid_error_args(method, args) and self.environment is Environment.DEVELOPMENT:
            return

        message = args[0] if args else ""
        error = args[1] if len(args) > 1 else None
        background = severity is Severity.ERROR_BACKGROUND

        if error is not None and should_downgrade(error, self._warning_patterns):
            suffix = BACKGROUND_ERROR_DOWNGRADE_SUFFIX if background else ERROR_DOWNGRADE_SUFFIX
            self._dispatch(Severity.WARN, f"{message}{suffix}", (error,), error=error)
            return

        self._dispatch(
            severity,
            message,
            (error,) if error is not None else (),
            fields={"isBackground": True} if background else None,
            error=error,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    @_contained
    def log(self, *args: Any) -> None:
        """Log a general message (console only)."""
        self._dispatch(Severity.LOG, args[0] if args else "", args[1:])

    @_contained
    def info(self, *args: Any) -> None:
        """Log an informational message (console only)."""
        self._dispatch(Severity.INFO, args[0] if args else "", args[1:])

    @_contained
    def warn(
        self,
        message: Any,
        *args: Any,
        custom_destination: str | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Log a warning (console, plus Slack in production).

        Args:
            message: Warning message
            *args: An optional exception, then an optional options mapping
                with `customChannel` / `customDestination` and `fields`
            custom_destination: Slack channel override
            fields: Extra fields for the Slack payload
        """
        error = args[0] if args and is_error_like(args[0]) else None

        display_args = args
        option_fields: Mapping[str, Any] = {}
        if args and isinstance(args[-1], Mapping):
            options = args[-1]
            display_args = args[:-1]
            custom_destination = (
                custom_destination
                or options.get("customDestination")
                or options.get("customChannel")
                or options.get("custom_destination")
            )
            option_fields = options.get("fields") or {}

        self._dispatch(
            Severity.WARN,
            message,
            display_args,
            fields={**option_fields, **(fields or {})},
            error=error,
            custom_destination=custom_destination,
        )

    @_contained
    def error(self, *args: Any) -> None:
        """
        Log an error (console, plus Slack in production).

        Must be called as error(message) or error(message, error). Errors
        matching `errors_to_treat_as_warnings` are logged as warnings.
        """
        self._error("error", Severity.ERROR, args)

    @_contained
    def error_background(self, *args: Any) -> None:
        """Like `error`, for background work; routed to the error-bg channel."""
        self._error("error_background", Severity.ERROR_BACKGROUND, args)

    @_contained
    def debug(self, *args: Any) -> None:
        """Log debug output when debug is enabled and the filter matches args[0]."""
        filter_text = args[0] if args else None
        if self.is_debug_mode_on(filter_text):
            self._dispatch(Severity.DEBUG, filter_text if filter_text is not None else "", args[1:])

    def is_debug_mode_on(self, filter_text: Any = None) -> bool:
        debug_config = self.config.debug
        try:
            return is_debug_allowed(debug_config.enabled, debug_config.filter, filter_text)
        except Exception as exc:
            logger.error("debug_filter_failed", **describe_exception(exc))
            return False

    async def send_to_slack(
        self,
        message: Any,
        *,
        fields: Mapping[str, Any] | None = None,
        level: Severity | str = Severity.INFO,
        custom_destination: str | None = None,
    ) -> None:
        """
        Send a message straight to the Slack sink, skipping the severity gate.

        `level` only selects the channel and webhook. Disabled or
        non-production Slack configuration still suppresses delivery.
        """
        sink = next((s for s in list(self._sinks) if getattr(s, "name", None) == SlackSink.name), None)
        if sink is None:
            return

        entry = LogEntry(
            severity=level_value(level),
            message=message,
            fields=dict(fields or {}),
            custom_destination=custom_destination,
        )
        deliver = getattr(sink, "notify", None) or sink.send
        try:
            result = deliver(entry)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.error("transport_error", sink=SlackSink.name, **describe_exception(exc))

    def get_transports(self) -> list[Sink]:
        """Registered sinks, in dispatch order (a copy)."""
        return list(self._sinks)

    def add_transport(self, sink: Sink) -> None:
        """Register a sink; it takes part in every later dispatch."""
        self._sinks.append(sink)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for in-flight deliveries. True if all finished within `timeout`."""
        return self._loop.flush(timeout)


def create_logger(config: LoggerConfig | Mapping[str, Any] | None = None, **options: Any) -> Logger:
    """
    Create a logger.

    Args:
        config: LoggerConfig or mapping (snake_case or camelCase keys)
        **options: Overrides applied on top of `config`

    Returns:
        Logger with a console sink, a Slack sink when a webhook URL is
        configured, then any custom `transports`.

    Example:
        logger = create_logger(
            app_name="my-app",
            debug={"enabled": True, "filter": "API"},
            slack={"webhook_url": os.environ["SLACK_WEBHOOK_URL"], "channels": {"error": "#app-errors"}},
        )
    """
    if isinstance(config, LoggerConfig):
        resolved = LoggerConfig.model_validate({**config.model_dump(), **options}) if options else config
    else:
        resolved = LoggerConfig.model_validate({**(config or {}), **options})

    environment = classify(resolved.environment)

    sinks: list[Sink] = [ConsoleSink(app_name=resolved.app_name)]
    if resolved.slack.webhook_url:
        sinks.append(SlackSink(resolved.slack, app_name=resolved.app_name, environment=environment))
    sinks.extend(resolved.transports)

    return Logger(resolved, environment=environment, sinks=sinks)
