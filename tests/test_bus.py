from __future__ import annotations

import logging
from typing import Any

import pytest

from pybeacon.bus import EventBus, Topic


def test_publish_delivers_in_subscription_order() -> None:
    bus = EventBus()
    calls: list[tuple[str, Any]] = []
    bus.subscribe(Topic.RESET, lambda payload: calls.append(("first", payload)))
    bus.subscribe(Topic.RESET, lambda payload: calls.append(("second", payload)))

    assert bus.publish(Topic.RESET, 1) == 2
    assert calls == [("first", 1), ("second", 1)]


def test_publish_without_subscribers_is_noop() -> None:
    assert EventBus().publish(Topic.ADVERTISEMENT, {"rssi": -1}) == 0


def test_topics_are_isolated() -> None:
    bus = EventBus()
    seen: list[Any] = []
    bus.subscribe(Topic.DEVICE_UPDATED, seen.append)

    bus.publish(Topic.ADVERTISEMENT, "packet")

    assert seen == []


def test_failing_handler_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    seen: list[Any] = []

    def _boom(payload: Any) -> None:
        raise RuntimeError("handler failed")

    bus.subscribe(Topic.SCAN_STATUS, _boom)
    bus.subscribe(Topic.SCAN_STATUS, seen.append)

    with caplog.at_level(logging.WARNING, logger="pybeacon.bus"):
        delivered = bus.publish(Topic.SCAN_STATUS, "status")

    assert delivered == 1
    assert seen == ["status"]
    assert "failed on topic scan-status" in caplog.text


def test_unsubscribe_closure_removes_handler() -> None:
    bus = EventBus()
    seen: list[Any] = []
    unsubscribe = bus.subscribe(Topic.RESET, seen.append)

    unsubscribe()
    bus.publish(Topic.RESET, "x")

    assert seen == []
    assert bus.subscriber_count(Topic.RESET) == 0


def test_unsubscribe_unknown_handler_returns_false() -> None:
    bus = EventBus()
    assert bus.unsubscribe(Topic.RESET, print) is False

    bus.subscribe(Topic.RESET, print)
    assert bus.unsubscribe(Topic.RESET, print) is True
    assert bus.unsubscribe(Topic.RESET, print) is False


def test_subscription_changes_during_publish_apply_next_time() -> None:
    bus = EventBus()
    late: list[Any] = []

    def _subscribe_late(payload: Any) -> None:
        bus.subscribe(Topic.RESET, late.append)

    unsubscribe = bus.subscribe(Topic.RESET, _subscribe_late)
    bus.publish(Topic.RESET, 1)
    assert late == []

    unsubscribe()
    bus.publish(Topic.RESET, 2)
    assert late == [2]


def test_plain_string_topics_match_enum_topics() -> None:
    bus = EventBus()
    seen: list[Any] = []
    bus.subscribe("device-updated", seen.append)

    bus.publish(Topic.DEVICE_UPDATED, "record")

    assert seen == ["record"]
