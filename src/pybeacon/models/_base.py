"""Base models shared by packets, device records and sessions.

Every pybeacon model inherits from :class:`BeaconBaseModel`, which provides
``alias_generator=to_camel`` so the camelCase keys used in session files
(``txPower``, ``manufacturerData``, ``lastSeen``) map to snake_case fields.

:class:`AdvertisementFields` carries the advertisement payload fields that
both incoming packets and stored records expose.  Its validators accept
either live buffers or their hex form, and its serializers render the hex
form in JSON mode, so a JSON dump is exactly the session wire format.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from pybeacon.ingestion.normalize import (
    normalize_manufacturer_map,
    normalize_service_map,
    normalize_tx_power,
    normalize_uuids,
)
from pybeacon.protocol.hexcodec import bytes_to_hex, format_manufacturer_key


class BeaconBaseModel(BaseModel):
    """Base for pybeacon models (camelCase aliases, extra keys ignored)."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class AdvertisementFields(BeaconBaseModel):
    """Advertisement payload fields, normalized on validation."""

    tx_power: int | None = None
    uuids: list[str] = Field(default_factory=list)
    manufacturer_data: dict[int, bytes] = Field(default_factory=dict)
    service_data: dict[str, bytes] = Field(default_factory=dict)

    @field_validator("tx_power", mode="before")
    @classmethod
    def _normalize_tx_power(cls, value: Any) -> int | None:
        return normalize_tx_power(value)

    @field_validator("uuids", mode="before")
    @classmethod
    def _normalize_uuids(cls, value: Any) -> list[str]:
        return normalize_uuids(value)

    @field_validator("manufacturer_data", mode="before")
    @classmethod
    def _normalize_manufacturer_data(cls, value: Any) -> dict[int, bytes]:
        return normalize_manufacturer_map(value)

    @field_validator("service_data", mode="before")
    @classmethod
    def _normalize_service_data(cls, value: Any) -> dict[str, bytes]:
        return normalize_service_map(value)

    @field_serializer("manufacturer_data", when_used="json")
    def _serialize_manufacturer_data(self, value: dict[int, bytes]) -> dict[str, str]:
        return {format_manufacturer_key(key): bytes_to_hex(data) for key, data in value.items()}

    @field_serializer("service_data", when_used="json")
    def _serialize_service_data(self, value: dict[str, bytes]) -> dict[str, str]:
        return {key: bytes_to_hex(data) for key, data in value.items()}
