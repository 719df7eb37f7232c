"""Tests for the hex codec and the U1 frame decoder."""

from __future__ import annotations

import struct

import pytest

from pybeacon.exceptions import FrameDecodeError
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
    HexPayload,
    MotionReading,
    U1Reading,
    classify_payload,
    decode_frame,
    estimate_coin_cell_percent,
)

U1_SERVICE = "00004000-0000-1000-8000-00805f9b34fb"


def _u1_frame(mv: int = 2950, uptime: int = 123_456, trigger: int = 0xFFFF) -> bytes:
    return b"\x01\x02\x03\x04\x05\x06" + struct.pack(">H", mv) + b"\xaa" * 6 + struct.pack(">IH", uptime, trigger)


# ------------------------------------------------------------------
# Hex codec
# ------------------------------------------------------------------


class TestHexCodec:
    def test_bytes_to_hex_uppercase_space_separated(self) -> None:
        assert bytes_to_hex(b"\x0a\xff\x10") == "0A FF 10"

    def test_bytes_to_hex_empty(self) -> None:
        assert bytes_to_hex(b"") == ""

    def test_hex_to_bytes_tolerates_case_and_whitespace(self) -> None:
        assert hex_to_bytes(" 0a  ff\t10 ") == b"\x0a\xff\x10"

    def test_hex_to_bytes_single_digit_tokens(self) -> None:
        assert hex_to_bytes("A 1") == b"\x0a\x01"

    @pytest.mark.parametrize("text", ["ZZ", "0AFF", "0x"])
    def test_hex_to_bytes_rejects_invalid_tokens(self, text: str) -> None:
        with pytest.raises(ValueError):
            hex_to_bytes(text)

    def test_coerce_bytes_accepts_buffers(self) -> None:
        assert coerce_bytes(bytearray(b"\x01\x02")) == b"\x01\x02"
        assert coerce_bytes(memoryview(b"\x01\x02")) == b"\x01\x02"
        assert coerce_bytes([1, 2]) == b"\x01\x02"
        assert coerce_bytes("01 02") == b"\x01\x02"

    def test_coerce_bytes_rejects_unknown_types(self) -> None:
        with pytest.raises(ValueError):
            coerce_bytes(12)
        with pytest.raises(ValueError):
            coerce_bytes([1, "2"])

    def test_manufacturer_keys(self) -> None:
        assert format_manufacturer_key(0x4C) == "0x004C"
        assert format_manufacturer_key(0xFFFF) == "0xFFFF"
        assert parse_manufacturer_key("0x004C") == 0x4C
        assert parse_manufacturer_key("76") == 76
        assert parse_manufacturer_key(0xFFFF) == 0xFFFF

    @pytest.mark.parametrize("key", ["0x10000", -1, True, 1.5, "zz"])
    def test_manufacturer_key_rejects_invalid(self, key: object) -> None:
        with pytest.raises(ValueError):
            parse_manufacturer_key(key)

    def test_serialize_payload_map_formats_manufacturer_keys(self) -> None:
        assert serialize_payload_map({76: b"\x02\x15"}, manufacturer=True) == {"0x004C": "02 15"}
        assert serialize_payload_map({"feaa": "0a ff"}) == {"feaa": "0A FF"}


# ------------------------------------------------------------------
# U1 decoding
# ------------------------------------------------------------------


class TestBatteryPercent:
    @pytest.mark.parametrize(
        ("mv", "expected"),
        [(3000, 100.0), (3300, 100.0), (2000, 0.0), (1500, 0.0), (2500, 50.0), (2755, 75.5)],
    )
    def test_clamp_linear(self, mv: int, expected: float) -> None:
        assert estimate_coin_cell_percent(mv) == pytest.approx(expected)


class TestU1Decoder:
    def test_decodes_standard_frame(self) -> None:
        reading = decode_frame({U1_SERVICE: _u1_frame(mv=2950, uptime=0x01020304, trigger=30)})

        assert reading == U1Reading(
            battery=BatteryReading(mv=2950, percent=95.0),
            uptime=0x01020304,
            motion=MotionReading(active=True, countdown=30),
        )
        assert reading.frame_type == "U1_REALTIME"

    def test_full_battery_reads_100_percent(self) -> None:
        reading = decode_frame({U1_SERVICE: _u1_frame(mv=3000)})
        assert reading is not None
        assert reading.battery.percent == 100.0

    def test_empty_battery_reads_0_percent(self) -> None:
        reading = decode_frame({U1_SERVICE: _u1_frame(mv=2000)})
        assert reading is not None
        assert reading.battery.percent == 0.0

    def test_idle_trigger_is_inactive(self) -> None:
        reading = decode_frame({U1_SERVICE: _u1_frame(trigger=0xFFFF)})
        assert reading is not None
        assert reading.motion == MotionReading(active=False, countdown=0)

    def test_zero_countdown_is_still_active(self) -> None:
        reading = decode_frame({U1_SERVICE: _u1_frame(trigger=0)})
        assert reading is not None
        assert reading.motion == MotionReading(active=True, countdown=0)

    def test_hex_and_binary_forms_decode_identically(self) -> None:
        frame = _u1_frame(mv=2611, uptime=987_654, trigger=12)

        binary = decode_frame({U1_SERVICE: frame})
        serialized = decode_frame({U1_SERVICE: bytes_to_hex(frame)})

        assert binary is not None
        assert binary == serialized

    def test_tagged_entrypoints_agree(self) -> None:
        frame = _u1_frame(mv=2400)
        decoder = FrameDecoder()

        from_binary = decoder.decode(BinaryPayload({"4000": bytearray(frame)}))
        from_hex = decoder.decode(HexPayload({"4000": bytes_to_hex(frame).lower()}))

        assert from_binary == from_hex
        assert decoder.decode_binary({"4000": memoryview(frame)}) == from_binary
        assert decoder.decode_hex({"4000": bytes_to_hex(frame)}) == from_hex

    def test_key_match_is_case_insensitive_substring(self) -> None:
        assert decode_frame({"0000-4000-ABCD": _u1_frame()}) is not None
        assert decode_frame({"FEAA": _u1_frame()}) is None

    def test_manufacturer_int_keys_match_in_hex_form(self) -> None:
        assert decode_frame({0x4000: _u1_frame()}) is not None
        assert decode_frame({4000: _u1_frame()}) is None

    def test_short_frame_is_no_result(self) -> None:
        assert decode_frame({U1_SERVICE: _u1_frame()[:19]}) is None
        assert decode_frame({U1_SERVICE: bytes_to_hex(_u1_frame()[:19])}) is None

    def test_longer_frame_uses_leading_bytes(self) -> None:
        reading = decode_frame({U1_SERVICE: _u1_frame(mv=2100) + b"\x00\x00"})
        assert reading is not None
        assert reading.battery.mv == 2100

    def test_invalid_hex_is_no_result(self) -> None:
        assert decode_frame({U1_SERVICE: "GG " * 20}) is None

    def test_first_matching_key_decides(self) -> None:
        payload = {"4000-short": b"\x00", "4000-full": _u1_frame()}
        assert decode_frame(payload) is None

    @pytest.mark.parametrize("payload", [None, {}, {"feaa": b"\x00" * 20}])
    def test_no_matching_entry_is_no_result(self, payload: dict | None) -> None:
        assert decode_frame(payload) is None

    def test_classify_payload(self) -> None:
        assert isinstance(classify_payload({"a": "01"}), HexPayload)
        assert isinstance(classify_payload({"a": b"\x01"}), BinaryPayload)
        assert isinstance(classify_payload({}), BinaryPayload)


class TestFrameParserRegistry:
    class _AltParser:
        key_fragment = "AA16"

        def parse(self, frame: bytes) -> U1Reading | None:
            if len(frame) < 2:
                raise FrameDecodeError("too short")
            mv = int.from_bytes(frame[:2], "big")
            return U1Reading(
                battery=BatteryReading(mv=mv, percent=estimate_coin_cell_percent(mv)),
                uptime=0,
                motion=MotionReading(active=False, countdown=0),
                frame_type="ALT",
            )

    def test_registered_parser_is_used_for_its_key(self) -> None:
        decoder = FrameDecoder()
        decoder.register(self._AltParser())

        reading = decoder.decode({"0000aa16-0000": "0B B8"})

        assert reading is not None
        assert reading.frame_type == "ALT"
        assert reading.battery.percent == 100.0

    class _OutOfRangeParser:
        key_fragment = "aa16"

        def parse(self, frame: bytes) -> U1Reading | None:
            _ = frame[25]
            return None

    def test_parser_errors_degrade_to_no_result(self) -> None:
        decoder = FrameDecoder([self._AltParser()])
        assert decoder.decode({"aa16": b"\x01"}) is None

    def test_unexpected_parser_exceptions_degrade_to_no_result(self) -> None:
        decoder = FrameDecoder()
        decoder.register(self._OutOfRangeParser())
        frame = bytes(20)

        assert decoder.decode({"aa16": frame}) is None
        assert decoder.decode_binary({"aa16": frame}) is None
        assert decoder.decode_hex({"aa16": bytes_to_hex(frame)}) is None

    def test_default_decoder_ignores_unregistered_formats(self) -> None:
        assert decode_frame({"aa16": b"\x0b\xb8"}) is None
