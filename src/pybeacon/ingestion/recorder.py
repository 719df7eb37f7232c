"""Capture of live advertisements into the replay session format."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from pybeacon._constants import DEFAULT_RECORDER_MAX_RECORDS
from pybeacon.bus import EventBus, Topic
from pybeacon.exceptions import InvalidReplaySessionError
from pybeacon.models.packet import AdvertisementPacket
from pybeacon.models.session import ReplaySession, SessionMeta, SessionPacket

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class Recorder:
    """Records :attr:`Topic.ADVERTISEMENT` packets with their offsets.

    Capture is capped at *max_records*; packets past the cap are dropped
    and a single warning is logged (see :attr:`truncated`).
    """

    def __init__(
        self,
        bus: EventBus,
        *,
        max_records: int = DEFAULT_RECORDER_MAX_RECORDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_records <= 0:
            raise ValueError("max_records must be positive")
        self._bus = bus
        self._max_records = max_records
        self._clock = clock
        self._records: list[SessionPacket] = []
        self._start = 0.0
        self._unsubscribe: Callable[[], None] | None = None
        self._truncated = False

    @property
    def is_recording(self) -> bool:
        return self._unsubscribe is not None

    @property
    def truncated(self) -> bool:
        """Whether packets were dropped because the cap was reached."""
        return self._truncated

    @property
    def max_records(self) -> int:
        return self._max_records

    def __len__(self) -> int:
        return len(self._records)

    def start(self) -> None:
        """Start a fresh capture (previous records are discarded)."""
        if self.is_recording:
            return
        self._records = []
        self._truncated = False
        self._start = self._clock()
        self._unsubscribe = self._bus.subscribe(Topic.ADVERTISEMENT, self._on_packet)

    def stop(self) -> None:
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

    def _on_packet(self, packet: Any) -> None:
        if len(self._records) >= self._max_records:
            if not self._truncated:
                _logger.warning("Recorder reached %d records; further packets are dropped", self._max_records)
                self._truncated = True
            return

        offset_ms = max(0, round((self._clock() - self._start) * 1000))
        try:
            if isinstance(packet, AdvertisementPacket):
                fields = packet.model_dump(exclude={"t"})
            else:
                fields = dict(packet)
            fields["t"] = offset_ms
            record = SessionPacket.model_validate(fields)
        except (TypeError, ValueError, ValidationError):
            _logger.debug("Recorder skipped unparseable packet", exc_info=True)
            return
        self._records.append(record)

    def to_dict(self, name: str = "recording") -> dict[str, Any]:
        """Session wire format; ``packets`` may be empty."""
        meta = SessionMeta(name=name, created=_now_ms())
        return {
            "meta": meta.model_dump(mode="json", by_alias=True),
            "packets": [record.model_dump(mode="json", by_alias=True) for record in self._records],
        }

    def to_json(self, name: str = "recording", *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(name), indent=indent)

    def to_session(self, name: str = "recording") -> ReplaySession:
        """Recorded packets as a loadable session.

        Raises
        ------
        InvalidReplaySessionError
            If nothing was recorded.
        """
        if not self._records:
            raise InvalidReplaySessionError("Nothing recorded")
        return ReplaySession(meta=SessionMeta(name=name, created=_now_ms()), packets=list(self._records))
