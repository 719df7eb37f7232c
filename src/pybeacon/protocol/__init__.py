"""Embedded sensor protocol decoding."""

from pybeacon.protocol.hexcodec import (
    bytes_to_hex,
    coerce_bytes,
    format_manufacturer_key,
    hex_to_bytes,
    parse_manufacturer_key,
    serialize_payload_map,
)
from pybeacon.protocol.u1 import (
    BatteryReading,
    BinaryPayload,
    FrameDecoder,
    FrameParser,
    HexPayload,
    MotionReading,
    PayloadMap,
    U1Reading,
    U1RealtimeParser,
    classify_payload,
    decode_frame,
    estimate_coin_cell_percent,
)

__all__ = [
    "BatteryReading",
    "BinaryPayload",
    "FrameDecoder",
    "FrameParser",
    "HexPayload",
    "MotionReading",
    "PayloadMap",
    "U1Reading",
    "U1RealtimeParser",
    "bytes_to_hex",
    "classify_payload",
    "coerce_bytes",
    "decode_frame",
    "estimate_coin_cell_percent",
    "format_manufacturer_key",
    "hex_to_bytes",
    "parse_manufacturer_key",
    "serialize_payload_map",
]
