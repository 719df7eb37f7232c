"""Pydantic models for packets, device records and replay sessions."""

from pybeacon.models._base import AdvertisementFields, BeaconBaseModel
from pybeacon.models.device import (
    BatterySample,
    DecodedHistory,
    DeviceRecord,
    DeviceStats,
    MotionSample,
    RawAdvertisement,
)
from pybeacon.models.packet import AdvertisementPacket, DeviceRef, coerce_packet
from pybeacon.models.session import ReplaySession, SessionMeta, SessionPacket

__all__ = [
    "AdvertisementFields",
    "AdvertisementPacket",
    "BatterySample",
    "BeaconBaseModel",
    "DecodedHistory",
    "DeviceRecord",
    "DeviceRef",
    "DeviceStats",
    "MotionSample",
    "RawAdvertisement",
    "ReplaySession",
    "SessionMeta",
    "SessionPacket",
    "coerce_packet",
]
