"""High-level engine wiring bus, store, rate sampler, replay and recorder."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pybeacon.bus import EventBus, Topic
from pybeacon.config import BeaconConfig
from pybeacon.exceptions import BeaconError
from pybeacon.ingestion.rates import RateSampler
from pybeacon.ingestion.recorder import Recorder
from pybeacon.ingestion.replay import ReplayScheduler, ReplayState
from pybeacon.models.device import DeviceRecord
from pybeacon.models.packet import AdvertisementPacket
from pybeacon.models.session import ReplaySession
from pybeacon.protocol.u1 import FrameDecoder
from pybeacon.query import QueryConfig, query
from pybeacon.state.events import PacketSource, ScanStatus
from pybeacon.state.store import DeviceStore

_logger = logging.getLogger(__name__)


class BeaconEngine:
    """Device-state engine bound to the running asyncio loop.

    Usage::

        async with BeaconEngine(config) as engine:
            engine.bus.subscribe(Topic.DEVICE_UPDATED, on_update)
            engine.load_replay(session_json)
            engine.start_replay()

    Live scanners push packets through :meth:`ingest` between
    :meth:`start_live` and :meth:`stop_live`.
    """

    def __init__(
        self,
        config: BeaconConfig | None = None,
        *,
        bus: EventBus | None = None,
        decoder: FrameDecoder | None = None,
    ) -> None:
        self._config = config if config is not None else BeaconConfig()
        self._bus = bus if bus is not None else EventBus()
        self._store = DeviceStore(bus=self._bus, decoder=decoder, history_cap=self._config.history_cap)
        self._recorder = Recorder(self._bus, max_records=self._config.recorder_max_records)
        self._rates: RateSampler | None = None
        self._replay: ReplayScheduler | None = None
        self._live_source: str | None = None
        self._unsubscribe_status: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BeaconEngine:
        loop = asyncio.get_running_loop()
        self._rates = RateSampler(self._store, loop, interval=self._config.rate_interval)
        self._replay = ReplayScheduler(
            loop,
            bus=self._bus,
            sink=self._store.upsert,
            playback_rate=self._config.playback_rate,
            loop_playback=self._config.replay_loop,
        )
        self._unsubscribe_status = self._bus.subscribe(Topic.SCAN_STATUS, self._on_scan_status)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Stop every source and timer.  Safe to call more than once."""
        if self._replay is not None:
            self._replay.stop()
        self.stop_live()
        self._recorder.stop()
        if self._rates is not None:
            self._rates.stop()
        unsubscribe = self._unsubscribe_status
        if unsubscribe is not None:
            unsubscribe()
            self._unsubscribe_status = None

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def config(self) -> BeaconConfig:
        return self._config

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def store(self) -> DeviceStore:
        return self._store

    @property
    def recorder(self) -> Recorder:
        return self._recorder

    @property
    def replay(self) -> ReplayScheduler:
        if self._replay is None:
            raise BeaconError("Engine not started; use 'async with BeaconEngine(...)'")
        return self._replay

    @property
    def rates(self) -> RateSampler:
        if self._rates is None:
            raise BeaconError("Engine not started; use 'async with BeaconEngine(...)'")
        return self._rates

    @property
    def live(self) -> bool:
        return self._live_source is not None

    # ------------------------------------------------------------------
    # Live source
    # ------------------------------------------------------------------

    def start_live(self, source: str = PacketSource.LIVE.value) -> None:
        """Mark a live scanner as running; packets arrive via :meth:`ingest`."""
        if self._live_source is not None:
            return
        self._live_source = source
        self._bus.publish(Topic.SCAN_STATUS, ScanStatus(running=True, source=source))

    def stop_live(self) -> None:
        source = self._live_source
        if source is None:
            return
        self._live_source = None
        self._bus.publish(Topic.SCAN_STATUS, ScanStatus(running=False, source=source))

    def ingest(self, packet: AdvertisementPacket | Mapping[str, Any]) -> DeviceRecord | None:
        """Feed one live packet: broadcast it, then merge it into the store."""
        self._bus.publish(Topic.ADVERTISEMENT, packet)
        return self._store.upsert(packet)

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def load_replay(self, session: ReplaySession | Mapping[str, Any] | str | bytes) -> ReplaySession:
        return self.replay.load(session)

    def start_replay(self) -> None:
        self.replay.start()

    def pause_replay(self) -> None:
        self.replay.pause()

    def resume_replay(self) -> None:
        self.replay.resume()

    def stop_replay(self) -> None:
        self.replay.stop()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self) -> None:
        self._recorder.start()

    def stop_recording(self) -> None:
        self._recorder.stop()

    def export_recording(self, name: str = "recording") -> str:
        """Recorded packets as session JSON."""
        return self._recorder.to_json(name)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, config: QueryConfig | Mapping[str, Any] | None = None) -> list[DeviceRecord]:
        return query(self._store.get_all(), config)

    def reset(self) -> None:
        self._store.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_scan_status(self, status: ScanStatus) -> None:
        # Rates are sampled while any source (live or replay) is running.
        if self._rates is None:
            return
        replay_running = self._replay is not None and self._replay.state == ReplayState.PLAYING
        if status.running or replay_running or self.live:
            self._rates.start()
        else:
            self._rates.stop()
        _logger.debug("Scan status: source=%s running=%s", status.source, status.running)
