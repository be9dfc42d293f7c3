"""Helpers for safe debug logging.

Request bodies carry card numbers, CVVs and bearer tokens. This module
redacts those fields before anything is emitted at DEBUG level.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "usertoken",
        "accesstoken",
        "refreshtoken",
        "authorization",
        "cookie",
        # Card data
        "cardnumber",
        "cardcvv",
        "cvv",
        "cvc",
    }
)

# Keys whose values are masked down to their last four characters.
_PARTIAL_VALUE_KEYS: frozenset[str] = frozenset({"iban", "accountnumber"})


def _mask_tail(value: Any) -> str:
    text = str(value)
    if len(text) <= 4:
        return "<redacted>"
    return f"…{text[-4:]}"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower().replace("_", "")
            if lowered in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            elif lowered in _PARTIAL_VALUE_KEYS and v is not None:
                redacted[key] = _mask_tail(v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
