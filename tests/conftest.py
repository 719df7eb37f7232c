from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import pytest


class FakeTimerHandle:
    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.seq = seq
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def run(self) -> None:
        self._callback(*self._args)


class FakeLoop:
    """Deterministic stand-in for ``loop.time()`` / ``loop.call_later()``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._timers: list[FakeTimerHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + max(0.0, delay), next(self._seq), callback, args)
        self._timers.append(handle)
        return handle

    def pending(self) -> list[FakeTimerHandle]:
        return [handle for handle in self._timers if not handle.cancelled()]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every timer that falls due."""
        target = self.now + seconds
        while True:
            due = [handle for handle in self.pending() if handle.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._timers.remove(handle)
            self.now = max(self.now, handle.when)
            handle.run()
        self.now = target


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()
