"""
Field sanitization for the remote payload.

Makes an arbitrary field tree safe to serialise: cycles become markers, nesting
is capped, exceptions become plain dicts and unserialisable objects are
replaced by a marker naming their type. JSON-safe values pass through untouched.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import orjson

from .errors import format_traceback

MAX_DEPTH = 5

CIRCULAR_MARKER = "[Circular Reference]"
MAX_DEPTH_MARKER = "[Max Depth Exceeded]"

# orjson only encodes ints within signed/unsigned 64-bit range
_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


def _type_name(value: Any) -> str:
    try:
        return type(value).__name__
    except Exception:
        return "unknown"


def _is_error_shaped(value: Any) -> bool:
    if isinstance(value, BaseException):
        return True
    return hasattr(value, "message") and hasattr(value, "stack")


def _extract_error(value: Any) -> dict[str, Any]:
    extracted: dict[str, Any] = {"name": _type_name(value), "message": None, "stack": None}

    try:
        explicit = getattr(value, "message", None)
        extracted["message"] = str(explicit) if explicit is not None else str(value)
    except Exception:
        extracted["message"] = "[Unreadable message]"

    try:
        stack = getattr(value, "stack", None)
        if stack is None and isinstance(value, BaseException):
            stack = format_traceback(value)
        extracted["stack"] = None if stack is None else str(stack)
    except Exception:
        extracted["stack"] = None

    return extracted


def _is_serializable(value: Any) -> bool:
    try:
        orjson.dumps(value)
    except TypeError:
        return False
    return True


def sanitize_value(value: Any, depth: int = 0, seen: set[int] | None = None) -> Any:
    """Sanitize a single value. `seen` holds ids of objects visited in this pass."""
    if depth > MAX_DEPTH:
        return MAX_DEPTH_MARKER

    if isinstance(value, int) and not isinstance(value, bool) and not _INT_MIN <= value <= _INT_MAX:
        return str(value)

    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if seen is None:
        seen = set()

    if isinstance(value, (list, tuple)):
        return [sanitize_value(item, depth + 1, seen) for item in value]

    if id(value) in seen:
        return CIRCULAR_MARKER
    seen.add(id(value))

    if _is_serializable(value):
        return value

    if _is_error_shaped(value):
        return _extract_error(value)

    if isinstance(value, Mapping):
        return {str(key): sanitize_value(item, depth + 1, seen) for key, item in value.items()}

    return f"[Non-serializable: {_type_name(value)}]"


def sanitize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Sanitize every field independently; a failing field becomes an inline diagnostic."""
    seen: set[int] = set()
    sanitized: dict[str, Any] = {}

    for key, value in fields.items():
        try:
            sanitized[key] = sanitize_value(value, 0, seen)
        except Exception as exc:
            sanitized[key] = f"[Sanitization failed: {_type_name(exc)}: {exc}]"

    return sanitized
