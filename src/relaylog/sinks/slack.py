"""
Slack sink: forwards warnings and errors to Slack incoming webhooks.

Routing is per level: warnings may use their own webhook, errors and
background errors share another, and each mapped Slack level may name its own
channel. When no channel is configured the webhook's default channel is used.
"""

from __future__ import annotations

from typing import Any, Mapping

from relaylog.config import Environment, SlackConfig, classify
from relaylog.diagnostics import get_logger
from relaylog.errors import describe_exception
from relaylog.sanitize import sanitize_fields
from relaylog.types import LogEntry, Severity, SlackLevel, level_value

from .base import Sink
from .webhook import SlackWebhookClient

logger = get_logger("relaylog.sinks.slack")

_LEVEL_MAP = {
    Severity.ERROR_BACKGROUND.value: SlackLevel.ERROR_BACKGROUND.value,
    Severity.ERROR.value: SlackLevel.ERROR.value,
    Severity.WARN.value: SlackLevel.WARN.value,
    Severity.INFO.value: SlackLevel.INFO.value,
}

_HANDLED_LEVELS = {
    Severity.WARN.value,
    Severity.ERROR.value,
    Severity.ERROR_BACKGROUND.value,
    SlackLevel.WARN.value,
    SlackLevel.ERROR.value,
    SlackLevel.ERROR_BACKGROUND.value,
}

_ERROR_LEVELS = {
    Severity.ERROR.value,
    Severity.ERROR_BACKGROUND.value,
    SlackLevel.ERROR_BACKGROUND.value,
}


def _with_channel_marker(channel: str) -> str:
    return channel if channel.startswith("#") else f"#{channel}"


def _error_type_name(error: Any) -> str:
    try:
        return error.__class__.__name__
    except Exception:
        return type(error).__name__


class SlackSink(Sink):
    """Slack incoming-webhook sink.

    Args:
        config: SlackConfig (or a mapping accepted by it); keyword overrides win
        app_name: Added to every payload as the `appName` field
        environment: Classified environment; read from RELAYLOG_ENV when omitted
        client: Webhook client (default: SlackWebhookClient built from config)
    """

    name = "slack"

    def __init__(
        self,
        config: SlackConfig | Mapping[str, Any] | None = None,
        *,
        app_name: str | None = None,
        environment: Environment | str | None = None,
        client: SlackWebhookClient | None = None,
        **overrides: Any,
    ):
        if isinstance(config, SlackConfig):
            config = config.model_dump()
        self.config = SlackConfig.model_validate({**(config or {}), **overrides})

        self.webhook_url = self.config.webhook_url
        self.webhook_urls = self.config.webhook_urls
        self.channels = dict(self.config.channels)
        # Legacy: channel names are no longer generated from the prefix
        self.channel_prefix = self.config.channel_prefix
        self.skip_in_development = self.config.skip_in_development
        self.enabled = self.config.enabled
        self.app_name = app_name
        self.environment = classify(environment)
        self.client = client or SlackWebhookClient(
            timeout=self.config.timeout,
            username=self.config.username,
            icon_emoji=self.config.icon_emoji,
        )

    # =========================================================================
    # Routing
    # =========================================================================

    def delivery_allowed(self) -> bool:
        """Gates that apply to every delivery regardless of level."""
        if not self.enabled or not self.webhook_url:
            return False
        if self.skip_in_development and self.environment is not Environment.PRODUCTION:
            return False
        return True

    def should_handle(self, severity: Severity | str) -> bool:
        if not self.delivery_allowed():
            return False
        return level_value(severity) in _HANDLED_LEVELS

    @staticmethod
    def map_level(severity: Severity | str) -> str:
        """Map an internal severity to its Slack level."""
        level = level_value(severity)
        return _LEVEL_MAP.get(level, level)

    def resolve_destination(self, severity: Severity | str, custom_destination: str | None = None) -> str | None:
        """Channel for a delivery; None means the webhook's default channel."""
        if custom_destination:
            return _with_channel_marker(custom_destination)

        channel = self.channels.get(self.map_level(severity))
        if channel:
            return _with_channel_marker(channel)
        return None

    def resolve_endpoint(self, severity: Severity | str) -> str | None:
        level = level_value(severity)
        if level in (Severity.WARN.value, SlackLevel.WARN.value) and self.webhook_urls.warn:
            return self.webhook_urls.warn
        if level in _ERROR_LEVELS and self.webhook_urls.error:
            return self.webhook_urls.error
        return self.webhook_url

    # =========================================================================
    # Delivery
    # =========================================================================

    def build_payload(self, entry: LogEntry) -> dict[str, Any]:
        message = "" if entry.message is None else str(entry.message)
        fields = dict(entry.fields)

        if fields.get("errorFormatInvalid") and entry.error is not None:
            issue = fields.get("errorFormatError") or "unknown format issue"
            fields["errorFormatIssue"] = issue
            fields["originalMessage"] = message
            fields["errorType"] = _error_type_name(entry.error)
            message = f"{message} [invalid error format: {issue}]"

        if self.app_name:
            fields = {"appName": self.app_name, **fields}

        payload: dict[str, Any] = {"text": message, "fields": sanitize_fields(fields)}
        channel = self.resolve_destination(entry.severity, entry.custom_destination)
        if channel:
            payload = {"channel": channel, **payload}
        return payload

    async def notify(self, entry: LogEntry) -> None:
        """Deliver without the severity gate. Never raises."""
        if not self.delivery_allowed():
            return

        try:
            endpoint = self.resolve_endpoint(entry.severity)
            payload = self.build_payload(entry)
            await self.client.post(endpoint, payload, level=self.map_level(entry.severity))
        except Exception as exc:
            logger.error(
                "slack_delivery_failed",
                severity=level_value(entry.severity),
                **describe_exception(exc),
            )

    async def send(self, entry: LogEntry) -> None:
        if not self.should_handle(entry.severity):
            return
        await self.notify(entry)
