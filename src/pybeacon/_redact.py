"""Helpers for safe packet logging.

Device addresses identify people's phones and wearables, and payload
buffers can be large.  :func:`redact_for_log` renders packets (models or
plain dicts) with addresses masked and buffers summarized before they go
into WARNING/DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_ADDRESS_KEYS: frozenset[str] = frozenset({"id", "address", "mac", "deviceid"})

_VISIBLE_SUFFIX = 5


def mask_address(value: str) -> str:
    """Keep only the last few characters of a device address."""
    if len(value) <= _VISIBLE_SUFFIX:
        return "*" * len(value)
    return "*" * (len(value) - _VISIBLE_SUFFIX) + value[-_VISIBLE_SUFFIX:]


def redact_for_log(value: Any, *, max_string: int = 128, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _ADDRESS_KEYS and isinstance(v, str):
                redacted[key] = mask_address(v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
