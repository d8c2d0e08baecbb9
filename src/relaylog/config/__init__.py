"""
relaylog Configuration Module.

Each sub-module represents an independent concern:

- environment: process environment classification (`RELAYLOG_ENV`)
- diagnostics: the local diagnostic side-channel (`RELAYLOG_LOG_*`)
- logger: records accepted by `create_logger`

Usage:
    from relaylog.config import classify, Environment

    classify()  # Environment.DEVELOPMENT unless RELAYLOG_ENV says otherwise
"""

from .diagnostics import DiagnosticsSettings, LogFormat, LogLevel
from .environment import Environment, EnvironmentSettings, classify, destination_prefix
from .logger import DebugConfig, LoggerConfig, SlackConfig, WebhookUrls

__all__ = [
    "DebugConfig",
    "DiagnosticsSettings",
    "Environment",
    "EnvironmentSettings",
    "LogFormat",
    "LogLevel",
    "LoggerConfig",
    "SlackConfig",
    "WebhookUrls",
    "classify",
    "destination_prefix",
]
