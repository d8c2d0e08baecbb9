"""
relaylog: a small logging facade with Slack notifications.

Sinks:
- console: every severity, to stdout/stderr
- slack: warnings and errors, via incoming webhooks (production only by default)
- custom: anything implementing `relaylog.sinks.Sink`

Usage:
    from relaylog import create_logger

    logger = create_logger(app_name="my-app", slack={"webhook_url": url})
    logger.info("Server started")
    logger.warn("Rate limit approaching")
    logger.error("Database connection failed", exc)
"""

from .config import Environment, LoggerConfig, classify, destination_prefix
from .diagnostics import configure_diagnostics, get_logger
from .errors import DEFAULT_WARNING_PATTERNS, normalize_error, should_downgrade
from .logger import Logger, create_logger, is_debug_allowed
from .sanitize import sanitize_fields
from .sinks import ConsoleSink, Sink, SlackSink, SlackWebhookClient
from .types import LogEntry, Severity, SlackLevel

__all__ = [
    "DEFAULT_WARNING_PATTERNS",
    "ConsoleSink",
    "Environment",
    "LogEntry",
    "Logger",
    "LoggerConfig",
    "Severity",
    "Sink",
    "SlackLevel",
    "SlackSink",
    "SlackWebhookClient",
    "classify",
    "configure_diagnostics",
    "create_logger",
    "destination_prefix",
    "get_logger",
    "is_debug_allowed",
    "normalize_error",
    "sanitize_fields",
    "should_downgrade",
]
