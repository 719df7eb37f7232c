"""Custom exception hierarchy for pybeacon."""

from __future__ import annotations


class BeaconError(Exception):
    """Base exception for all pybeacon errors."""


class BeaconConfigError(BeaconError):
    """Invalid or missing configuration."""


class MalformedPacketError(BeaconError):
    """Advertisement packet cannot be ingested (e.g. no device id).

    The store catches this, logs it and drops the packet; it never reaches
    callers of :meth:`pybeacon.state.store.DeviceStore.upsert`.
    """


class InvalidReplaySessionError(BeaconError):
    """Replay session is unparseable, malformed, or has no packets."""


class ReplayStateError(BeaconError):
    """Replay operation is not valid in the scheduler's current state."""


class FrameDecodeError(BeaconError):
    """A sensor frame matched a parser but its contents are unusable.

    Raised inside frame parsers only; :class:`pybeacon.protocol.u1.FrameDecoder`
    converts it to "nothing decoded".
    """
