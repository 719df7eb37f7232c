"""Filtering and sorting of store snapshots.

:func:`query` is pure: it never modifies the snapshot or its records.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import ConfigDict

from pybeacon._constants import DEFAULT_MIN_RSSI
from pybeacon.models._base import BeaconBaseModel
from pybeacon.models.device import DeviceRecord


class FilterField(StrEnum):
    NAME = "name"
    ID = "id"


class SortKey(StrEnum):
    RSSI = "rssi"
    LAST_SEEN = "lastSeen"
    RATE = "rate"
    TOTAL = "total"
    DELTA = "delta"
    NAME = "name"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class QueryConfig(BeaconBaseModel):
    """Filter/sort settings (accepts camelCase or snake_case keys)."""

    model_config = ConfigDict(frozen=True)

    min_rssi: int = DEFAULT_MIN_RSSI
    filter_text: str = ""
    filter_field: FilterField = FilterField.NAME
    sort_key: SortKey = SortKey.RSSI
    sort_order: SortOrder = SortOrder.DESC


_SORT_VALUES: dict[SortKey, Callable[[DeviceRecord], Any]] = {
    SortKey.RSSI: lambda record: record.rssi,
    SortKey.LAST_SEEN: lambda record: record.last_seen,
    SortKey.RATE: lambda record: record.stats.rate,
    SortKey.TOTAL: lambda record: record.stats.total,
    SortKey.DELTA: lambda record: record.stats.rssi_delta,
    SortKey.NAME: lambda record: (record.name or "").lower(),
}


def _matches_text(record: DeviceRecord, needle: str, field: FilterField) -> bool:
    target = record.id if field == FilterField.ID else (record.name or "")
    return needle in target.lower()


def query(
    snapshot: Mapping[str, DeviceRecord] | Iterable[DeviceRecord],
    config: QueryConfig | Mapping[str, Any] | None = None,
) -> list[DeviceRecord]:
    """Filter by RSSI and text, then sort.

    Parameters
    ----------
    snapshot
        ``DeviceStore.get_all()`` output, or any iterable of records.  Its
        iteration order is the tie-break order.
    config
        A :class:`QueryConfig`, or a mapping such as ``{"minRssi": -80}``.

    Raises
    ------
    pydantic.ValidationError
        If *config* is a mapping with invalid values.
    """
    if config is None:
        settings = QueryConfig()
    elif isinstance(config, QueryConfig):
        settings = config
    else:
        settings = QueryConfig.model_validate(config)

    records = snapshot.values() if isinstance(snapshot, Mapping) else snapshot
    needle = settings.filter_text.lower()

    filtered = [
        record
        for record in records
        if record.rssi >= settings.min_rssi and (not needle or _matches_text(record, needle, settings.filter_field))
    ]

    # sorted() is stable in both directions (reverse=True keeps equal
    # elements in input order), so ties keep snapshot order.
    return sorted(
        filtered,
        key=_SORT_VALUES[settings.sort_key],
        reverse=settings.sort_order == SortOrder.DESC,
    )
