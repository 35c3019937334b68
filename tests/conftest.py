"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
import struct
from collections.abc import Callable, Coroutine, Sequence
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Manual time
# ---------------------------------------------------------------------------


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose timers fire only from :meth:`advance`."""

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.timers: list[ManualTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.clock.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.clock.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.clock.now = max(self.clock.now, timer.due)
            timer.fired = True
            timer.callback()
        self.clock.now = target


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    ::

        await advance()       # 5 yields (default)
        await advance(10)     # 10 yields for heavier workloads
    """

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


# ---------------------------------------------------------------------------
# Audio / wire helpers
# ---------------------------------------------------------------------------


def pcm_bytes(values: Sequence[int]) -> bytes:
    """Pack int16 values as PCM16LE."""
    return struct.pack(f"<{len(values)}h", *values)


def notification(packet_id: int, chunk_index: int, payload: bytes) -> bytes:
    """Build a raw audio notification: ``[id u16 LE, chunk u8, payload]``."""
    return struct.pack("<HB", packet_id, chunk_index) + payload


def square_wave(n_samples: int, amplitude: int = 16384) -> list[int]:
    """Alternating +/- amplitude; passes straight through the high-pass filter."""
    return [amplitude if i % 2 == 0 else -amplitude for i in range(n_samples)]
