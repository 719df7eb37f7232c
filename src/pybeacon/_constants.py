"""Shared constants for pybeacon."""

from __future__ import annotations

# Placeholder name for devices that never advertised one.
UNKNOWN_NAME = "unknown"

# Signed 8-bit minimum; scanners report it when TX power is not advertised.
TX_POWER_UNKNOWN = -128

# Decoded sample history kept per device (battery and motion each).
DEFAULT_HISTORY_CAP = 120

DEFAULT_MIN_RSSI = -100

DEFAULT_RATE_INTERVAL = 1.0

DEFAULT_RECORDER_MAX_RECORDS = 10_000

SESSION_FORMAT_VERSION = 1

# ---------------------------------------------------------------------------
# U1 sensor realtime frame
# ---------------------------------------------------------------------------

U1_SERVICE_KEY = "4000"
U1_FRAME_LENGTH = 20
U1_FRAME_TYPE = "U1_REALTIME"

U1_BATTERY_OFFSET = 6
U1_UPTIME_OFFSET = 14
U1_TRIGGER_OFFSET = 18

# Trigger value meaning "no motion pending".
U1_TRIGGER_IDLE = 0xFFFF

# Coin cell (CR2032/CR2477) voltage window used for the percent estimate.
COIN_CELL_EMPTY_MV = 2000
COIN_CELL_FULL_MV = 3000

# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------

# Wall-clock seconds between passes when looping a session whose packets all
# share one offset.
REPLAY_MIN_LOOP_PERIOD = 1.0
