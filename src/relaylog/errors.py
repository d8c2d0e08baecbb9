"""
Error value normalization and warning reclassification.

Error values handed to the logger are untrusted: they may be exceptions,
mappings, arbitrary objects, or not error-shaped at all. `normalize_error`
turns any of them into flat, serialisable fields and never raises; format
problems are reported as fields instead.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping, Sequence
from typing import Any, Callable, TypedDict

import orjson


class NormalizedErrorFields(TypedDict, total=False):
    errorMessage: str
    errorReason: str
    errorDetails: str
    errorStack: str
    errorFormatInvalid: bool
    errorFormatError: str
    errorRawValue: str
    errorRawMessage: str
    errorRawReason: str
    errorRawDetails: str
    errorRawStack: str


# Common non-critical errors that don't need an alert
DEFAULT_WARNING_PATTERNS: tuple[str, ...] = (
    "User not found",
    "Failed to fetch",
    "Load failed",
    "Network error",
    "Timeout",
)

_NON_OBJECT_TYPES = (str, bytes, bytearray, int, float, bool, list, tuple, set, frozenset)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_text_or_number(value: Any) -> bool:
    return isinstance(value, str) or _is_number(value)


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


# (field, output suffix, type check, expected type description), in report order
_FIELD_RULES: tuple[tuple[str, str, Callable[[Any], bool], str], ...] = (
    ("message", "Message", _is_text_or_number, "a string or number"),
    ("reason", "Reason", _is_text_or_number, "a string or number"),
    ("details", "Details", _is_text_or_number, "a string or number"),
    ("stack", "Stack", _is_text, "a string"),
)


def is_error_like(value: Any) -> bool:
    """True for genuine exception instances."""
    return isinstance(value, BaseException)


def format_traceback(exc: BaseException) -> str | None:
    tb = exc.__traceback__
    if tb is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, tb))


def read_error_field(error: Any, name: str) -> Any:
    """Read `name` from an error-like value; None when absent.

    Exceptions expose `message` as str(exc) and `stack` as their traceback
    unless they carry explicit attributes of those names.
    """
    if isinstance(error, Mapping):
        return error.get(name)

    explicit = getattr(error, name, None)
    if explicit is not None or not isinstance(error, BaseException):
        return explicit

    if name == "message":
        return str(error) or None
    if name == "stack":
        return format_traceback(error)
    return None


def _render_raw(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return orjson.dumps(value).decode()
    except TypeError:
        return repr(value)


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:
        pass
    try:
        return f"<{type(value).__name__}>"
    except Exception:
        return "<unrepresentable>"


def normalize_error(error: Any) -> NormalizedErrorFields:
    """
    Convert an arbitrary error value into flat `error*` fields.

    Never raises. Mistyped or non-object input yields `errorFormatInvalid`
    together with a human-readable `errorFormatError` and `errorRaw*` copies
    of the offending values.

    Args:
        error: Any value passed where an error was expected.

    Returns:
        The normalized fields; empty for None.
    """
    if error is None:
        return {}

    try:
        if isinstance(error, _NON_OBJECT_TYPES):
            return {
                "errorFormatInvalid": True,
                "errorFormatError": (
                    f"Expected error to be an object, but received {type(error).__name__}"
                ),
                "errorRawValue": str(error),
            }

        fields: dict[str, Any] = {}
        problems: list[str] = []

        for name, suffix, check, expected in _FIELD_RULES:
            value = read_error_field(error, name)
            if value is None:
                continue
            if check(value):
                fields[f"error{suffix}"] = str(value)
            else:
                problems.append(f"{name} should be {expected}, but received {type(value).__name__}")
                fields[f"errorRaw{suffix}"] = _render_raw(value)

        if problems:
            fields["errorFormatInvalid"] = True
            fields["errorFormatError"] = "; ".join(problems)

        return fields  # type: ignore[return-value]
    except Exception as exc:
        try:
            reason = f"{type(exc).__name__}: {exc}"
        except Exception:
            reason = type(exc).__name__
        return {
            "errorFormatInvalid": True,
            "errorFormatError": f"Failed to inspect error value: {reason}",
            "errorRawValue": _safe_repr(error),
        }


def should_downgrade(error: Any, patterns: Sequence[str]) -> bool:
    """
    Decide whether an error should be logged as a warning.

    True iff any pattern is a case-sensitive substring of the error's
    `message` or `reason`.
    """
    if error is None or not patterns:
        return False

    try:
        message = read_error_field(error, "message")
        reason = read_error_field(error, "reason")
        message_text = "" if message is None else str(message)
        reason_text = "" if reason is None else str(reason)
    except Exception:
        return False

    return any(pattern in message_text or pattern in reason_text for pattern in patterns)


def describe_exception(exc: Any) -> dict[str, Any]:
    """Best-effort message/name/stack of a failure, for diagnostics. Never raises."""
    try:
        message = str(exc) or repr(exc)
    except Exception:
        message = "Unknown error"

    try:
        name = type(exc).__name__
    except Exception:
        name = "Error"

    stack = None
    if isinstance(exc, BaseException):
        try:
            stack = format_traceback(exc)
        except Exception:
            stack = None

    return {"error": message, "error_type": name or "Error", "stack": stack}
