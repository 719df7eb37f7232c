"""Hex codec for advertisement payloads.

Session files carry payload bytes as uppercase, space-separated byte pairs
(``"0A FF 10"``) and manufacturer ids as ``0x`` + four hex digits
(``"0x004C"``).  Everything here converts between that serialized form and
``bytes``/``int``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MAX_MANUFACTURER_ID = 0xFFFF


def bytes_to_hex(data: bytes | bytearray | memoryview) -> str:
    """Render *data* as uppercase byte pairs separated by single spaces."""
    return bytes(data).hex(" ").upper()


def hex_to_bytes(text: str) -> bytes:
    """Parse a whitespace-separated hex string into bytes.

    Each token is one byte written with one or two hex digits.  An empty
    or blank string yields ``b""``.

    Raises
    ------
    ValueError
        If a token is not a valid one- or two-digit hex byte.
    """
    out = bytearray()
    for token in text.split():
        if len(token) > 2:
            raise ValueError(f"Hex token {token!r} is longer than one byte")
        out.append(int(token, 16))
    return bytes(out)


def coerce_bytes(value: Any) -> bytes:
    """Normalize a live buffer or its serialized hex form to ``bytes``.

    Accepts ``bytes``, ``bytearray``, ``memoryview``, a hex string, or a
    sequence of ints in ``0..255``.

    Raises
    ------
    ValueError
        If *value* is none of the accepted shapes.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return hex_to_bytes(value)
    if isinstance(value, (list, tuple)):
        if not all(isinstance(item, int) and not isinstance(item, bool) for item in value):
            raise ValueError("Byte sequences must contain only integers")
        return bytes(value)
    raise ValueError(f"Unsupported payload buffer type: {type(value).__name__}")


def format_manufacturer_key(company_id: int) -> str:
    """Format a manufacturer id as ``0x`` + four uppercase hex digits."""
    return f"0x{company_id:04X}"


def parse_manufacturer_key(key: Any) -> int:
    """Parse a manufacturer id from an int, ``"0x004C"`` or ``"76"``.

    Raises
    ------
    ValueError
        If the key is not an integer id in ``0..0xFFFF``.
    """
    if isinstance(key, bool):
        raise ValueError("Manufacturer id cannot be a boolean")
    if isinstance(key, int):
        company_id = key
    elif isinstance(key, str):
        text = key.strip()
        company_id = int(text, 16) if text.lower().startswith("0x") else int(text)
    else:
        raise ValueError(f"Unsupported manufacturer id type: {type(key).__name__}")
    if not 0 <= company_id <= _MAX_MANUFACTURER_ID:
        raise ValueError(f"Manufacturer id out of range: {company_id}")
    return company_id


def serialize_payload_map(entries: Mapping[Any, Any], *, manufacturer: bool = False) -> dict[str, str]:
    """Serialize a payload map to ``{key: "HEX PAIRS"}``.

    Values may already be hex strings (they are re-normalized).  With
    *manufacturer* set, keys are rendered via :func:`format_manufacturer_key`.
    """
    out: dict[str, str] = {}
    for key, value in entries.items():
        key_text = format_manufacturer_key(parse_manufacturer_key(key)) if manufacturer else str(key)
        out[key_text] = bytes_to_hex(coerce_bytes(value))
    return out
