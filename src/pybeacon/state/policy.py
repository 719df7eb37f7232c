"""Deterministic merge policy for device records.

This module contains *no* payload parsing; the ingestion/Pydantic boundary
hands the store normalized packets.
"""

from __future__ import annotations

from typing import TypeVar

from pybeacon._constants import UNKNOWN_NAME

T = TypeVar("T")


def is_unknown_name(name: str | None) -> bool:
    return name is None or not name.strip() or name == UNKNOWN_NAME


def resolve_name(current: str | None, incoming: str | None) -> str:
    """A real advertised name always wins; placeholders never overwrite."""
    if not is_unknown_name(incoming):
        return incoming  # type: ignore[return-value]
    if not is_unknown_name(current):
        return current  # type: ignore[return-value]
    return UNKNOWN_NAME


def widen_rssi_range(rssi_min: int, rssi_max: int, rssi: int) -> tuple[int, int]:
    return min(rssi_min, rssi), max(rssi_max, rssi)


def append_bounded(history: list[T], item: T, cap: int) -> None:
    """Append *item*, evicting the oldest entries beyond *cap*."""
    history.append(item)
    overflow = len(history) - cap
    if overflow > 0:
        del history[:overflow]
