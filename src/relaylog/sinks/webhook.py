"""
Slack incoming-webhook HTTP client.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx
import orjson

from relaylog.formatters import orjson_dumps

# Values shorter than this are laid out side by side by Slack
SHORT_FIELD_LENGTH = 25

_LEVEL_COLORS = {
    "warn": "warning",
    "error": "danger",
    "error-bg": "danger",
}


def _field_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return orjson_dumps(value, default=str)
    except orjson.JSONEncodeError:
        return str(value)


class SlackWebhookClient:
    """Posts `{channel?, text, fields}` payloads to a Slack incoming webhook.

    Args:
        timeout: Request timeout in seconds
        username: Optional bot username override
        icon_emoji: Optional bot icon override
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        username: str | None = None,
        icon_emoji: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout
        self._username = username
        self._icon_emoji = icon_emoji
        self._transport = transport

    def build_body(self, payload: Mapping[str, Any], *, level: str | None = None) -> dict[str, Any]:
        """Convert a neutral payload into the Slack webhook JSON body."""
        text = str(payload.get("text", ""))
        fields = payload.get("fields") or {}

        body: dict[str, Any] = {"text": text}
        if payload.get("channel"):
            body["channel"] = payload["channel"]
        if self._username:
            body["username"] = self._username
        if self._icon_emoji:
            body["icon_emoji"] = self._icon_emoji

        if fields:
            attachment_fields = []
            for title, value in fields.items():
                rendered = _field_value(value)
                attachment_fields.append(
                    {"title": str(title), "value": rendered, "short": len(rendered) < SHORT_FIELD_LENGTH}
                )
            attachment: dict[str, Any] = {"fallback": text, "fields": attachment_fields}
            color = _LEVEL_COLORS.get(level or "")
            if color:
                attachment["color"] = color
            body["attachments"] = [attachment]

        return body

    async def post(self, url: str, payload: Mapping[str, Any], *, level: str | None = None) -> None:
        """POST the payload; raises httpx errors on transport failure or non-2xx status."""
        body = self.build_body(payload, level=level)
        headers = {"Content-Type": "application/json"}

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(url, content=orjson_dumps(body, default=str), headers=headers)
            response.raise_for_status()
