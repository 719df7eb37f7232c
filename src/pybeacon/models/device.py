"""Canonical per-device record held by the store."""

from __future__ import annotations

from pydantic import Field

from pybeacon._constants import UNKNOWN_NAME
from pybeacon.models._base import AdvertisementFields, BeaconBaseModel


class DeviceStats(BeaconBaseModel):
    """Reception statistics.

    ``bucket`` counts packets since the last rate sample; ``rate`` is the
    bucket value captured at that sample.
    """

    total: int = 0
    bucket: int = 0
    rate: int = 0
    rssi_min: int
    rssi_max: int

    @property
    def rssi_delta(self) -> int:
        return abs(self.rssi_max - self.rssi_min)


class RawAdvertisement(AdvertisementFields):
    """Payload of the most recent packet (replaced, never accumulated)."""


class BatterySample(BeaconBaseModel):
    t: int
    mv: int
    percent: float


class MotionSample(BeaconBaseModel):
    t: int
    active: bool
    countdown: int


class DecodedHistory(BeaconBaseModel):
    """Bounded sensor history, oldest first."""

    battery: list[BatterySample] = Field(default_factory=list)
    motion: list[MotionSample] = Field(default_factory=list)
    uptime: int | None = None

    @property
    def latest_battery(self) -> BatterySample | None:
        return self.battery[-1] if self.battery else None

    @property
    def latest_motion(self) -> MotionSample | None:
        return self.motion[-1] if self.motion else None


class DeviceRecord(BeaconBaseModel):
    """Merged state for one device id."""

    id: str
    name: str = UNKNOWN_NAME
    rssi: int
    last_seen: int
    stats: DeviceStats
    raw: RawAdvertisement = Field(default_factory=RawAdvertisement)
    decoded: DecodedHistory = Field(default_factory=DecodedHistory)
