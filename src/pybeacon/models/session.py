"""Recorded session format shared by the recorder and the replay scheduler.

Wire format (JSON)::

    {"meta": {"name": "...", "created": 1700000000000, "version": 1},
     "packets": [{"t": 0, "device": {"id": "...", "name": null}, "rssi": -60,
                  "txPower": null, "uuids": [],
                  "manufacturerData": {"0x004C": "02 15"},
                  "serviceData": {"<uuid>": "0A FF 10"}}]}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import ConfigDict, Field, ValidationError, model_validator

from pybeacon._constants import SESSION_FORMAT_VERSION
from pybeacon.exceptions import InvalidReplaySessionError
from pybeacon.models._base import BeaconBaseModel
from pybeacon.models.packet import AdvertisementPacket


class SessionMeta(BeaconBaseModel):
    name: str = "recording"
    created: int | float = 0
    version: int = SESSION_FORMAT_VERSION


class SessionPacket(AdvertisementPacket):
    """A packet plus its offset (ms) from the start of the recording."""

    model_config = ConfigDict(frozen=True)

    t: int | float = Field(ge=0)


class ReplaySession(BeaconBaseModel):
    """Ordered, non-empty list of recorded packets.

    Packets are sorted ascending by ``t`` on validation; packets sharing an
    offset keep their recorded order.
    """

    meta: SessionMeta = Field(default_factory=SessionMeta)
    packets: list[SessionPacket] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _sort_packets(self) -> ReplaySession:
        self.packets.sort(key=lambda packet: packet.t)
        return self

    @property
    def duration_ms(self) -> float:
        return self.packets[-1].t - self.packets[0].t

    @classmethod
    def load(cls, source: ReplaySession | Mapping[str, Any] | str | bytes | bytearray) -> ReplaySession:
        """Validate a session from a model, mapping, or JSON text/bytes.

        Raises
        ------
        InvalidReplaySessionError
            If the input is not parseable, has no packet list, the list is
            empty, or any packet is malformed.
        """
        if isinstance(source, ReplaySession):
            return source
        if isinstance(source, (str, bytes, bytearray)):
            try:
                source = json.loads(source)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise InvalidReplaySessionError(f"Session is not valid JSON: {exc}") from exc
        if not isinstance(source, Mapping):
            raise InvalidReplaySessionError("Session must be a JSON object")
        packets = source.get("packets")
        if not isinstance(packets, list):
            raise InvalidReplaySessionError("Session has no packet list")
        if not packets:
            raise InvalidReplaySessionError("Session packet list is empty")
        try:
            return cls.model_validate(source)
        except ValidationError as exc:
            raise InvalidReplaySessionError(f"Session is malformed: {exc.error_count()} error(s)") from exc

    @classmethod
    def from_json(cls, text: str | bytes | bytearray) -> ReplaySession:
        return cls.load(text)

    def to_dict(self) -> dict[str, Any]:
        """Render the wire format (hex payloads, camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
