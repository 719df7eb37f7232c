"""Engine configuration for pybeacon."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any, TypeVar

from pybeacon._constants import (
    DEFAULT_HISTORY_CAP,
    DEFAULT_RATE_INTERVAL,
    DEFAULT_RECORDER_MAX_RECORDS,
)
from pybeacon.exceptions import BeaconConfigError

T = TypeVar("T")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, parse: Callable[[str], T]) -> T:
    try:
        return parse(value.strip())
    except ValueError as exc:
        raise BeaconConfigError(f"{env_key} is not a valid number: {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BeaconConfig:
    """Engine configuration.

    Parameters
    ----------
    history_cap : int
        Maximum number of decoded battery/motion samples kept per device.
        Oldest samples are evicted first.
    rate_interval : float
        Seconds between rate samples.  Each tick copies a device's packet
        bucket into ``stats.rate`` and resets the bucket.
    recorder_max_records : int
        Capture cap for the recorder.  Packets beyond the cap are dropped
        with a single warning.
    playback_rate : float
        Default replay speed multiplier (``1.0`` is real time).
    replay_loop : bool
        Restart replay from the first packet when the session ends.
    """

    history_cap: int = DEFAULT_HISTORY_CAP
    rate_interval: float = DEFAULT_RATE_INTERVAL
    recorder_max_records: int = DEFAULT_RECORDER_MAX_RECORDS
    playback_rate: float = 1.0
    replay_loop: bool = False

    def __post_init__(self) -> None:
        if self.history_cap <= 0:
            raise BeaconConfigError(f"history_cap must be positive (got {self.history_cap})")
        if self.rate_interval <= 0:
            raise BeaconConfigError(f"rate_interval must be positive (got {self.rate_interval})")
        if self.recorder_max_records <= 0:
            raise BeaconConfigError(f"recorder_max_records must be positive (got {self.recorder_max_records})")
        if self.playback_rate <= 0:
            raise BeaconConfigError(f"playback_rate must be positive (got {self.playback_rate})")

    @classmethod
    def from_env(cls, **overrides: Any) -> BeaconConfig:
        """Create configuration from environment variables.

        Reads optional ``BEACON_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BeaconConfig
            Populated configuration.

        Raises
        ------
        BeaconConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "BEACON_HISTORY_CAP": ("history_cap", int),
            "BEACON_RATE_INTERVAL": ("rate_interval", float),
            "BEACON_RECORDER_MAX_RECORDS": ("recorder_max_records", int),
            "BEACON_PLAYBACK_RATE": ("playback_rate", float),
        }
        for env_key, (field_name, parse) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, parse)

        if "replay_loop" not in overrides:
            config_kwargs["replay_loop"] = _env_bool(env.get("BEACON_REPLAY_LOOP"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
