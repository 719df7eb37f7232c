"""Synchronous in-process event bus.

Delivery is immediate and ordered: ``publish`` calls every handler
subscribed to the topic, in subscription order, before returning.  A
failing handler is logged and skipped; it never prevents delivery to the
handlers after it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import StrEnum
from typing import Any

_logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Topic(StrEnum):
    ADVERTISEMENT = "advertisement"  # raw packet (source -> store, recorder)
    DEVICE_UPDATED = "device-updated"  # record copy (store -> consumers)
    SCAN_STATUS = "scan-status"  # ScanStatus
    RESET = "reset"  # no payload


class EventBus:
    """Topic -> ordered subscriber list."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}
        self._lock = threading.RLock()

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register *handler* for *topic*.

        Returns a zero-argument callable that removes this subscription.
        """
        with self._lock:
            self._subscribers.setdefault(topic, []).append(handler)

        def _unsubscribe() -> None:
            self.unsubscribe(topic, handler)

        return _unsubscribe

    def unsubscribe(self, topic: str, handler: Handler) -> bool:
        """Remove the first registration of *handler*; ``False`` if absent."""
        with self._lock:
            handlers = self._subscribers.get(topic)
            if not handlers:
                return False
            try:
                handlers.remove(handler)
            except ValueError:
                return False
            if not handlers:
                self._subscribers.pop(topic, None)
            return True

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, payload: Any = None) -> int:
        """Deliver *payload* to the current subscribers of *topic*.

        Handlers added or removed during delivery take effect on the next
        publish.  Returns the number of handlers that completed without
        raising.
        """
        with self._lock:
            handlers = list(self._subscribers.get(topic, ()))

        delivered = 0
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                _logger.warning("Subscriber %r failed on topic %s", handler, topic, exc_info=True)
                continue
            delivered += 1
        return delivered
