"""pybeacon - Event-driven BLE advertisement state engine with session replay."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybeacon")
except PackageNotFoundError:
    __version__ = "0+local"
from pybeacon.bus import EventBus, Topic
from pybeacon.config import BeaconConfig
from pybeacon.engine import BeaconEngine
from pybeacon.exceptions import (
    BeaconConfigError,
    BeaconError,
    FrameDecodeError,
    InvalidReplaySessionError,
    MalformedPacketError,
    ReplayStateError,
)
from pybeacon.ingestion.rates import RateSampler
from pybeacon.ingestion.recorder import Recorder
from pybeacon.ingestion.replay import ReplayScheduler, ReplayState
from pybeacon.models import (
    AdvertisementPacket,
    BatterySample,
    DecodedHistory,
    DeviceRecord,
    DeviceRef,
    DeviceStats,
    MotionSample,
    RawAdvertisement,
    ReplaySession,
    SessionMeta,
    SessionPacket,
)
from pybeacon.protocol import FrameDecoder, U1Reading, decode_frame
from pybeacon.query import FilterField, QueryConfig, SortKey, SortOrder, query
from pybeacon.state.events import PacketSource, ScanStatus
from pybeacon.state.store import DeviceStore

__all__ = [
    "__version__",
    "AdvertisementPacket",
    "BatterySample",
    "BeaconConfig",
    "BeaconConfigError",
    "BeaconEngine",
    "BeaconError",
    "DecodedHistory",
    "DeviceRecord",
    "DeviceRef",
    "DeviceStats",
    "DeviceStore",
    "EventBus",
    "FilterField",
    "FrameDecodeError",
    "FrameDecoder",
    "InvalidReplaySessionError",
    "MalformedPacketError",
    "MotionSample",
    "PacketSource",
    "QueryConfig",
    "RateSampler",
    "RawAdvertisement",
    "Recorder",
    "ReplayScheduler",
    "ReplaySession",
    "ReplayState",
    "ReplayStateError",
    "ScanStatus",
    "SessionMeta",
    "SessionPacket",
    "SortKey",
    "SortOrder",
    "Topic",
    "U1Reading",
    "decode_frame",
    "query",
]
