"""
Logger Configuration.

Records accepted by `create_logger`. Field names are snake_case; the camelCase
spelling (`appName`, `webhookUrls`, `skipInDevelopment`, ...) is accepted too.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from relaylog.errors import DEFAULT_WARNING_PATTERNS


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class DebugConfig(_ConfigModel):
    enabled: bool = Field(default=False, description="Enable debug() output")
    filter: Optional[Union[str, list[str]]] = Field(
        default=None,
        description="Pattern or patterns matched against the debug filter text",
    )


class WebhookUrls(_ConfigModel):
    warn: Optional[str] = Field(default=None, description="Webhook used for warnings")
    error: Optional[str] = Field(default=None, description="Webhook used for errors and background errors")


class SlackConfig(_ConfigModel):
    """Slack incoming-webhook sink configuration."""

    enabled: bool = True
    webhook_url: Optional[str] = Field(default=None, description="Default webhook URL")
    webhook_urls: WebhookUrls = Field(default_factory=WebhookUrls)
    channels: dict[str, str] = Field(
        default_factory=dict,
        description="Channel overrides keyed by Slack level (info, warn, error, error-bg, ...)",
    )
    channel_prefix: str = Field(
        default="logs",
        description="Legacy channel name prefix; channels are no longer generated from it",
    )
    skip_in_development: bool = Field(default=True, description="Only deliver in production")
    username: Optional[str] = None
    icon_emoji: Optional[str] = None
    timeout: float = Field(default=10.0, description="HTTP timeout in seconds")


class LoggerConfig(_ConfigModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    app_name: Optional[str] = None
    environment: Optional[str] = Field(
        default=None,
        description="Overrides RELAYLOG_ENV for this logger",
    )
    debug: DebugConfig = Field(default_factory=DebugConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    errors_to_treat_as_warnings: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WARNING_PATTERNS),
    )
    transports: list[Any] = Field(default_factory=list)
