"""Periodic packet-rate sampling."""

from __future__ import annotations

import asyncio
import logging

from pybeacon._constants import DEFAULT_RATE_INTERVAL
from pybeacon.ingestion.replay import TimerHandle, TimerLoop
from pybeacon.state.store import DeviceStore

_logger = logging.getLogger(__name__)


class RateSampler:
    """Calls :meth:`DeviceStore.sample_rates` every *interval* seconds.

    Runs on the same loop that delivers packets, re-arming one timer per
    tick, so the ``rate = bucket; bucket = 0`` swap never overlaps an upsert.
    """

    def __init__(
        self,
        store: DeviceStore,
        loop: TimerLoop | None = None,
        *,
        interval: float = DEFAULT_RATE_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._store = store
        self._loop: TimerLoop = loop if loop is not None else asyncio.get_running_loop()
        self._interval = interval
        self._handle: TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        if self._handle is not None:
            return
        self._handle = self._loop.call_later(self._interval, self._tick)

    def stop(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _tick(self) -> None:
        if self._handle is None:
            return
        try:
            self._store.sample_rates()
        except Exception:
            _logger.warning("Rate sampling failed", exc_info=True)
        self._handle = self._loop.call_later(self._interval, self._tick)
