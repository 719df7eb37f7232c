"""Replay of recorded sessions.

The scheduler plays packets against a virtual clock with exactly one timer
outstanding at a time: each fire delivers the current packet, advances the
index and arms the next timer.  Pausing cancels that one timer and freezes
the elapsed time, so resuming neither skips nor repeats a packet.

Packet *i* is due ``(t[i] - t[0]) / playback_rate`` ms after the time
origin.  The timer source is anything with ``time()`` (seconds) and
``call_later(delay, callback)``; normally the running asyncio loop.  All
methods must be called from that loop's thread.

Looping restarts the session right after its last packet.  A session whose
packets all share one offset waits ``REPLAY_MIN_LOOP_PERIOD`` seconds
between passes instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any, Protocol

from pybeacon._constants import REPLAY_MIN_LOOP_PERIOD
from pybeacon.bus import EventBus, Topic
from pybeacon.exceptions import ReplayStateError
from pybeacon.models.packet import AdvertisementPacket
from pybeacon.models.session import ReplaySession, SessionPacket
from pybeacon.state.events import PacketSource, ScanStatus

_logger = logging.getLogger(__name__)

PacketSink = Callable[[AdvertisementPacket], Any]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    def time(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class ReplayState(StrEnum):
    IDLE = "idle"
    LOADED = "loaded"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


class ReplayScheduler:
    """Single-timer packet player with pause/resume, looping and rate scaling."""

    def __init__(
        self,
        loop: TimerLoop | None = None,
        *,
        bus: EventBus | None = None,
        sink: PacketSink | None = None,
        playback_rate: float = 1.0,
        loop_playback: bool = False,
    ) -> None:
        if playback_rate <= 0:
            raise ValueError("playback_rate must be positive")
        self._loop: TimerLoop = loop if loop is not None else asyncio.get_running_loop()
        self._bus = bus if bus is not None else EventBus()
        self._sink = sink
        self._rate = playback_rate
        self.loop_playback = loop_playback

        self._state = ReplayState.IDLE
        self._session: ReplaySession | None = None
        self._packets: list[SessionPacket] = []
        self._index = 0
        self._origin = 0.0  # loop time (s) at which virtual elapsed time was 0
        self._frozen_elapsed = 0.0  # elapsed seconds captured by pause()
        self._handle: TimerHandle | None = None
        self._cycles = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReplayState:
        return self._state

    @property
    def session(self) -> ReplaySession | None:
        return self._session

    @property
    def index(self) -> int:
        """Index of the next packet to deliver."""
        return self._index

    @property
    def total(self) -> int:
        return len(self._packets)

    @property
    def cycles(self) -> int:
        """Completed passes over the session (looping playback)."""
        return self._cycles

    @property
    def has_pending_timer(self) -> bool:
        return self._handle is not None

    @property
    def playback_rate(self) -> float:
        return self._rate

    @playback_rate.setter
    def playback_rate(self, rate: float) -> None:
        """Change speed, keeping the current session position."""
        if rate <= 0:
            raise ValueError("playback_rate must be positive")
        position_ms = self.position_ms
        self._rate = rate
        elapsed = position_ms / rate / 1000.0
        if self._state == ReplayState.PAUSED:
            self._frozen_elapsed = elapsed
        elif self._state == ReplayState.PLAYING:
            self._cancel_timer()
            self._origin = self._loop.time() - elapsed
            self._arm()

    @property
    def position_ms(self) -> float:
        """Session time (ms, relative to the first packet) the clock has reached."""
        return max(0.0, self._elapsed()) * 1000.0 * self._rate

    def _elapsed(self) -> float:
        if self._state == ReplayState.PLAYING:
            return self._loop.time() - self._origin
        if self._state == ReplayState.PAUSED:
            return self._frozen_elapsed
        return 0.0

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def load(self, session: ReplaySession | Mapping[str, Any] | str | bytes | bytearray) -> ReplaySession:
        """Validate and load a session, replacing any current playback.

        Raises
        ------
        InvalidReplaySessionError
            If the session is invalid.  The scheduler is left untouched.
        """
        loaded = ReplaySession.load(session)

        was_active = self._state in (ReplayState.PLAYING, ReplayState.PAUSED)
        self._cancel_timer()
        self._session = loaded
        self._packets = list(loaded.packets)
        self._index = 0
        self._frozen_elapsed = 0.0
        self._cycles = 0
        self._state = ReplayState.LOADED
        _logger.info("Replay session %r loaded (%d packets)", loaded.meta.name, len(self._packets))
        if was_active:
            self._publish_status(False)
        return loaded

    def start(self) -> None:
        """Begin playback from the first packet.

        No-op while playing; resumes when paused.

        Raises
        ------
        ReplayStateError
            If no session has been loaded.
        """
        if self._session is None:
            raise ReplayStateError("No replay session loaded")
        if self._state == ReplayState.PLAYING:
            return
        if self._state == ReplayState.PAUSED:
            self.resume()
            return

        self._index = 0
        self._frozen_elapsed = 0.0
        self._origin = self._loop.time()
        self._state = ReplayState.PLAYING
        self._publish_status(True)
        self._arm()

    def pause(self) -> None:
        if self._state != ReplayState.PLAYING:
            return
        self._frozen_elapsed = self._loop.time() - self._origin
        self._cancel_timer()
        self._state = ReplayState.PAUSED

    def resume(self) -> None:
        if self._state != ReplayState.PAUSED:
            return
        self._origin = self._loop.time() - self._frozen_elapsed
        self._state = ReplayState.PLAYING
        self._arm()

    def stop(self) -> None:
        """Cancel playback.  Idempotent; nothing is delivered afterwards."""
        self._cancel_timer()
        if self._state in (ReplayState.PLAYING, ReplayState.PAUSED):
            self._state = ReplayState.STOPPED
            self._publish_status(False)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _arm(self) -> None:
        if self._index >= len(self._packets):
            self._finish()
            return
        first = self._packets[0].t
        due_ms = (self._packets[self._index].t - first) / self._rate
        elapsed_ms = (self._loop.time() - self._origin) * 1000.0
        delay = max(0.0, due_ms - elapsed_ms) / 1000.0
        self._handle = self._loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._state != ReplayState.PLAYING or self._index >= len(self._packets):
            return

        packet = self._packets[self._index]
        self._index += 1
        self._deliver(packet)

        # A sink or subscriber may have paused/stopped playback.
        if self._state == ReplayState.PLAYING and self._handle is None:
            self._arm()

    def _deliver(self, packet: SessionPacket) -> None:
        if self._sink is not None:
            try:
                self._sink(packet)
            except Exception:
                _logger.debug("Replay sink failed on packet %d", self._index - 1, exc_info=True)
        self._bus.publish(Topic.ADVERTISEMENT, packet)

    def _finish(self) -> None:
        self._cycles += 1
        if self.loop_playback:
            self._index = 0
            self._origin = self._loop.time()
            if self._packets[-1].t == self._packets[0].t:
                # Zero-length session: wait between passes instead of re-arming at once.
                self._origin += REPLAY_MIN_LOOP_PERIOD
            self._arm()
            return
        self._state = ReplayState.STOPPED
        _logger.info("Replay finished after %d packets", len(self._packets))
        self._publish_status(False)

    def _publish_status(self, running: bool) -> None:
        self._bus.publish(Topic.SCAN_STATUS, ScanStatus(running=running, source=PacketSource.REPLAY.value))
