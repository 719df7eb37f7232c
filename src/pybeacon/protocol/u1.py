"""U1 sensor frame decoding.

The U1 beacon embeds a 20-byte realtime frame in its service data (key
containing ``4000``)::

    [0:6]   device id
    [6:8]   battery voltage, mV        (big-endian u16)
    [8:14]  mini UUID
    [14:18] device uptime              (big-endian u32)
    [18:20] motion trigger countdown   (big-endian u16, 0xFFFF = idle)

Payload maps reach the decoder in one of two shapes: live buffers
(``key -> bytes``) or the serialized session form (``key -> "0A FF .."``).
Both are wrapped in a small tagged union and normalized to ``bytes`` before
any parser sees them, so the two shapes always decode identically.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from pybeacon._constants import (
    COIN_CELL_EMPTY_MV,
    COIN_CELL_FULL_MV,
    U1_BATTERY_OFFSET,
    U1_FRAME_LENGTH,
    U1_FRAME_TYPE,
    U1_SERVICE_KEY,
    U1_TRIGGER_IDLE,
    U1_TRIGGER_OFFSET,
    U1_UPTIME_OFFSET,
)
from pybeacon.protocol.hexcodec import coerce_bytes, hex_to_bytes

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatteryReading:
    mv: int
    percent: float


@dataclass(frozen=True)
class MotionReading:
    active: bool
    countdown: int


@dataclass(frozen=True)
class U1Reading:
    """One decoded sensor frame."""

    battery: BatteryReading
    uptime: int
    motion: MotionReading
    frame_type: str = U1_FRAME_TYPE


@dataclass(frozen=True)
class BinaryPayload:
    """Payload map holding live buffers (``bytes``, ``bytearray``, ``memoryview``)."""

    entries: Mapping[Any, Any]


@dataclass(frozen=True)
class HexPayload:
    """Payload map in serialized form (space-separated hex strings)."""

    entries: Mapping[Any, str]


PayloadMap = BinaryPayload | HexPayload


class FrameParser(Protocol):
    """Parser for one frame format, selected by a fragment of the payload key.

    ``parse`` returns ``None`` for frames it cannot use and may raise
    :class:`~pybeacon.exceptions.FrameDecodeError`; any exception it raises
    is logged by :class:`FrameDecoder` and treated as nothing decoded.
    """

    key_fragment: str

    def parse(self, frame: bytes) -> U1Reading | None: ...


def estimate_coin_cell_percent(mv: int) -> float:
    """Clamp-linear estimate: 2000 mV -> 0 %, 3000 mV -> 100 %."""
    if mv >= COIN_CELL_FULL_MV:
        return 100.0
    if mv <= COIN_CELL_EMPTY_MV:
        return 0.0
    return (mv - COIN_CELL_EMPTY_MV) * 100 / (COIN_CELL_FULL_MV - COIN_CELL_EMPTY_MV)


class U1RealtimeParser:
    """Standard U1 realtime frame (service ``0x4000``, 20 bytes)."""

    key_fragment = U1_SERVICE_KEY

    def parse(self, frame: bytes) -> U1Reading | None:
        if len(frame) < U1_FRAME_LENGTH:
            return None

        (voltage,) = struct.unpack_from(">H", frame, U1_BATTERY_OFFSET)
        (uptime,) = struct.unpack_from(">I", frame, U1_UPTIME_OFFSET)
        (trigger,) = struct.unpack_from(">H", frame, U1_TRIGGER_OFFSET)
        triggered = trigger != U1_TRIGGER_IDLE

        return U1Reading(
            battery=BatteryReading(mv=voltage, percent=estimate_coin_cell_percent(voltage)),
            uptime=uptime,
            motion=MotionReading(active=triggered, countdown=trigger if triggered else 0),
        )


def _key_text(key: Any) -> str:
    # Manufacturer ids arrive as ints; compare them in their 0x form.
    if isinstance(key, int) and not isinstance(key, bool):
        return f"0x{key:04x}"
    return str(key).lower()


class FrameDecoder:
    """Locates a known frame in a payload map and parses it.

    Parsers are tried in registration order against each key; the first
    matching entry decides the outcome, even when that outcome is "nothing
    decoded" (short frame, bad hex).  ``decode*`` never raises.
    """

    def __init__(self, parsers: Sequence[FrameParser] | None = None) -> None:
        self._parsers: list[FrameParser] = list(parsers) if parsers is not None else [U1RealtimeParser()]

    @property
    def parsers(self) -> tuple[FrameParser, ...]:
        return tuple(self._parsers)

    def register(self, parser: FrameParser) -> None:
        """Add a secondary frame format (tried after the existing parsers)."""
        self._parsers.append(parser)

    def _match(self, entries: Mapping[Any, Any]) -> tuple[Any, FrameParser] | None:
        for key in entries:
            if key is None:
                continue
            text = _key_text(key)
            for parser in self._parsers:
                if parser.key_fragment.lower() in text:
                    return key, parser
        return None

    def _run(self, parser: FrameParser, frame: bytes) -> U1Reading | None:
        try:
            return parser.parse(frame)
        except Exception:
            _logger.debug("Frame parser %s rejected %d-byte frame", type(parser).__name__, len(frame), exc_info=True)
            return None

    def decode_binary(self, entries: Mapping[Any, Any]) -> U1Reading | None:
        """Decode from live buffers."""
        hit = self._match(entries)
        if hit is None:
            return None
        key, parser = hit
        try:
            frame = coerce_bytes(entries[key])
        except ValueError:
            return None
        return self._run(parser, frame)

    def decode_hex(self, entries: Mapping[Any, str]) -> U1Reading | None:
        """Decode from the serialized hex form."""
        hit = self._match(entries)
        if hit is None:
            return None
        key, parser = hit
        value = entries[key]
        if not isinstance(value, str):
            return None
        try:
            frame = hex_to_bytes(value)
        except ValueError:
            _logger.debug("Invalid hex in payload entry %r", key)
            return None
        return self._run(parser, frame)

    def decode(self, payload: PayloadMap | Mapping[Any, Any] | None) -> U1Reading | None:
        """Decode a tagged payload, or classify a plain mapping first."""
        if payload is None:
            return None
        if isinstance(payload, HexPayload):
            return self.decode_hex(payload.entries)
        if isinstance(payload, BinaryPayload):
            return self.decode_binary(payload.entries)
        return self.decode(classify_payload(payload))


def classify_payload(entries: Mapping[Any, Any]) -> PayloadMap:
    """Tag a plain mapping as hex or binary.

    Maps where every value is a string are serialized; anything else is
    treated as live buffers (per-entry coercion still accepts hex strings).
    """
    if entries and all(isinstance(value, str) for value in entries.values()):
        return HexPayload(entries)
    return BinaryPayload(entries)


_default_decoder = FrameDecoder()


def default_decoder() -> FrameDecoder:
    return _default_decoder


def decode_frame(payload: PayloadMap | Mapping[Any, Any] | None) -> U1Reading | None:
    """Decode *payload* with the default decoder."""
    return _default_decoder.decode(payload)
