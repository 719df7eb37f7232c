"""Advertisement packet model (transient input to the store)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ConfigDict, Field, ValidationError, field_validator

from pybeacon.exceptions import MalformedPacketError
from pybeacon.ingestion.normalize import safe_str
from pybeacon.models._base import AdvertisementFields, BeaconBaseModel


class DeviceRef(BeaconBaseModel):
    """Identity part of a packet as reported by the scanner."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str | None:
        return safe_str(value)


class AdvertisementPacket(AdvertisementFields):
    """One received advertisement.

    ``tx_power`` of ``-128`` is normalized to ``None`` on validation.  A
    missing device id is representable here; the store rejects it.
    """

    model_config = ConfigDict(frozen=True)

    device: DeviceRef = Field(default_factory=DeviceRef)
    rssi: int

    @property
    def device_id(self) -> str | None:
        return self.device.id


def coerce_packet(packet: AdvertisementPacket | Mapping[str, Any]) -> AdvertisementPacket:
    """Validate *packet* and require a device id.

    Raises
    ------
    MalformedPacketError
        If the packet cannot be validated or carries no device id.
    """
    if isinstance(packet, AdvertisementPacket):
        model = packet
    elif isinstance(packet, Mapping):
        try:
            model = AdvertisementPacket.model_validate(packet)
        except ValidationError as exc:
            raise MalformedPacketError(f"Invalid advertisement packet: {exc.error_count()} error(s)") from exc
    else:
        raise MalformedPacketError(f"Unsupported packet type: {type(packet).__name__}")

    if not model.device_id:
        raise MalformedPacketError("Advertisement packet has no device id")
    return model
