"""In-memory device store.

This is the only component allowed to mutate device records.  Every record
it hands out (return values, ``DEVICE_UPDATED`` payloads, snapshots) is a
deep copy, so consumers can never alias internal state.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

from pybeacon._constants import DEFAULT_HISTORY_CAP
from pybeacon._redact import mask_address, redact_for_log
from pybeacon.bus import EventBus, Topic
from pybeacon.exceptions import MalformedPacketError
from pybeacon.ingestion.normalize import normalize_name, normalize_tx_power
from pybeacon.models.device import (
    BatterySample,
    DeviceRecord,
    DeviceStats,
    MotionSample,
    RawAdvertisement,
)
from pybeacon.models.packet import AdvertisementPacket, coerce_packet
from pybeacon.protocol.u1 import FrameDecoder, U1Reading, default_decoder
from pybeacon.state.policy import append_bounded, resolve_name, widen_rssi_range

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class DeviceStore:
    """Canonical per-device state.

    All reads and writes take one re-entrant lock, so ``upsert`` and
    ``sample_rates`` never interleave on the same counters.  Change events
    are published while the lock is held, which keeps per-device event
    order identical to mutation order; handlers may call back into the
    store from the publishing thread.
    """

    def __init__(
        self,
        *,
        bus: EventBus | None = None,
        decoder: FrameDecoder | None = None,
        history_cap: int = DEFAULT_HISTORY_CAP,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if history_cap <= 0:
            raise ValueError("history_cap must be positive")
        self._bus = bus if bus is not None else EventBus()
        self._decoder = decoder if decoder is not None else default_decoder()
        self._history_cap = history_cap
        self._clock = clock
        self._devices: dict[str, DeviceRecord] = {}
        self._lock = threading.RLock()

    @property
    def bus(self) -> EventBus:
        return self._bus

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        with self._lock:
            return device_id in self._devices

    def upsert(self, packet: AdvertisementPacket | Mapping[str, Any]) -> DeviceRecord | None:
        """Merge one packet into the store.

        Returns a copy of the updated record, or ``None`` when the packet
        was dropped as malformed (logged, never raised).
        """
        try:
            normalized = coerce_packet(packet)
        except MalformedPacketError as exc:
            _logger.warning("Dropping malformed packet (%s): %s", exc, redact_for_log(packet))
            return None

        device_id = normalized.device_id
        assert device_id is not None  # guaranteed by coerce_packet

        with self._lock:
            now = self._clock()
            raw = RawAdvertisement(
                tx_power=normalize_tx_power(normalized.tx_power),
                uuids=list(normalized.uuids),
                manufacturer_data=dict(normalized.manufacturer_data),
                service_data=dict(normalized.service_data),
            )
            incoming_name = normalize_name(normalized.device.name)

            record = self._devices.get(device_id)
            if record is None:
                record = DeviceRecord(
                    id=device_id,
                    name=resolve_name(None, incoming_name),
                    rssi=normalized.rssi,
                    last_seen=now,
                    stats=DeviceStats(rssi_min=normalized.rssi, rssi_max=normalized.rssi),
                    raw=raw,
                )
                self._devices[device_id] = record
                _logger.debug("New device %s", mask_address(device_id))
            else:
                record.rssi = normalized.rssi
                record.last_seen = now
                record.raw = raw
                record.name = resolve_name(record.name, incoming_name)
                record.stats.rssi_min, record.stats.rssi_max = widen_rssi_range(
                    record.stats.rssi_min, record.stats.rssi_max, normalized.rssi
                )

            record.stats.total += 1
            record.stats.bucket += 1

            reading = self._decode(normalized)
            if reading is not None:
                self._append_reading(record, reading, now)

            self._bus.publish(Topic.DEVICE_UPDATED, record.model_copy(deep=True))
            return record.model_copy(deep=True)

    def _decode(self, packet: AdvertisementPacket) -> U1Reading | None:
        # Service data carries the U1 frame; manufacturer data is the fallback.
        for entries in (packet.service_data, packet.manufacturer_data):
            if not entries:
                continue
            try:
                reading = self._decoder.decode_binary(entries)
            except Exception:
                _logger.debug("Frame decoding failed for %s", mask_address(packet.device_id or ""), exc_info=True)
                return None
            if reading is not None:
                return reading
        return None

    def _append_reading(self, record: DeviceRecord, reading: U1Reading, now: int) -> None:
        decoded = record.decoded
        append_bounded(
            decoded.battery,
            BatterySample(t=now, mv=reading.battery.mv, percent=reading.battery.percent),
            self._history_cap,
        )
        append_bounded(
            decoded.motion,
            MotionSample(t=now, active=reading.motion.active, countdown=reading.motion.countdown),
            self._history_cap,
        )
        decoded.uptime = reading.uptime

    def sample_rates(self) -> dict[str, int]:
        """Fold each device's bucket into its rate (``rate = bucket; bucket = 0``)."""
        with self._lock:
            rates: dict[str, int] = {}
            for device_id, record in self._devices.items():
                record.stats.rate = record.stats.bucket
                record.stats.bucket = 0
                rates[device_id] = record.stats.rate
            return rates

    def get_by_id(self, device_id: str) -> DeviceRecord | None:
        with self._lock:
            record = self._devices.get(device_id)
            return record.model_copy(deep=True) if record is not None else None

    def get_all(self) -> dict[str, DeviceRecord]:
        """Snapshot of every record, in first-sighting order."""
        with self._lock:
            return {device_id: record.model_copy(deep=True) for device_id, record in self._devices.items()}

    def clear(self) -> None:
        """Drop every record and publish :attr:`Topic.RESET`."""
        with self._lock:
            count = len(self._devices)
            self._devices.clear()
            _logger.debug("Store cleared (%d devices)", count)
            self._bus.publish(Topic.RESET)
