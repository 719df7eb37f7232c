"""Normalization helpers.

Centralizes defensive parsing and sentinel handling for incoming packets,
so the state store only ever sees clean values.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from pybeacon._constants import TX_POWER_UNKNOWN, UNKNOWN_NAME
from pybeacon.protocol.hexcodec import coerce_bytes, parse_manufacturer_key

_logger = logging.getLogger(__name__)


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def normalize_tx_power(value: Any) -> int | None:
    """Map the ``-128`` "not advertised" sentinel (and junk) to ``None``."""
    parsed = safe_int(value)
    if parsed is None or parsed == TX_POWER_UNKNOWN:
        return None
    return parsed


def normalize_name(value: Any) -> str | None:
    """Return the advertised name, or ``None`` when it is missing/placeholder."""
    text = safe_str(value)
    if text is None or text == UNKNOWN_NAME or text == "N/A":
        return None
    return text


def normalize_uuids(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        return [str(item) for item in value if item is not None]
    _logger.debug("Ignoring uuids of type %s", type(value).__name__)
    return []


def normalize_manufacturer_map(value: Any) -> dict[int, bytes]:
    """Normalize ``{company id: buffer or hex}`` to ``{int: bytes}``.

    Entries whose key or value cannot be interpreted are dropped (logged at
    DEBUG); the rest of the packet is still usable.
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        _logger.debug("Ignoring manufacturerData of type %s", type(value).__name__)
        return {}
    result: dict[int, bytes] = {}
    for key, data in value.items():
        try:
            result[parse_manufacturer_key(key)] = coerce_bytes(data)
        except ValueError:
            _logger.debug("Dropping undecodable manufacturerData entry %r", key, exc_info=True)
    return result


def normalize_service_map(value: Any) -> dict[str, bytes]:
    """Normalize ``{service uuid: buffer or hex}`` to ``{str: bytes}``.

    Entries whose value cannot be interpreted are dropped (logged at DEBUG).
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        _logger.debug("Ignoring serviceData of type %s", type(value).__name__)
        return {}
    result: dict[str, bytes] = {}
    for key, data in value.items():
        try:
            result[str(key)] = coerce_bytes(data)
        except ValueError:
            _logger.debug("Dropping undecodable serviceData entry %r", key, exc_info=True)
    return result
