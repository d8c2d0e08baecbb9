"""
Environment Configuration.

The environment is determined by the `RELAYLOG_ENV` environment variable and
classified into one of development, staging or production. Only the exact
lowercase values "staging" and "production" are recognised; anything else is
treated as development.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EnvironmentSettings(BaseSettings):
    """
    Raw environment selection.

    Prefix: RELAYLOG_
    """

    model_config = SettingsConfigDict(
        env_prefix="RELAYLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default=Environment.DEVELOPMENT.value,
        description="Current environment (development, staging, production)",
    )

    @property
    def environment(self) -> Environment:
        return classify(self.env)

    @property
    def is_development(self) -> bool:
        return self.environment is Environment.DEVELOPMENT

    @property
    def is_staging(self) -> bool:
        return self.environment is Environment.STAGING

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION


def classify(value: str | Environment | None = None) -> Environment:
    """Map a raw setting to an Environment.

    With no argument the process setting is read through EnvironmentSettings.
    """
    if value is None:
        value = EnvironmentSettings().env
    if isinstance(value, Environment):
        return value

    raw = str(value)
    if raw == Environment.PRODUCTION.value:
        return Environment.PRODUCTION
    if raw == Environment.STAGING.value:
        return Environment.STAGING
    return Environment.DEVELOPMENT


def destination_prefix(environment: Environment | str | None = None) -> str:
    """Display prefix for destination names: empty for production, "{env}-" otherwise."""
    env = classify(environment)
    if env is Environment.PRODUCTION:
        return ""
    return f"{env.value}-"
