"""Status payloads published alongside device updates."""

from __future__ import annotations

from enum import StrEnum

from pydantic import ConfigDict

from pybeacon.models._base import BeaconBaseModel


class PacketSource(StrEnum):
    LIVE = "live"
    REPLAY = "replay"


class ScanStatus(BeaconBaseModel):
    """Payload of :attr:`pybeacon.bus.Topic.SCAN_STATUS`."""

    model_config = ConfigDict(frozen=True)

    running: bool
    source: str
