"""Deferred actions with cancel handles.

Components that need a one-shot timer take a :data:`Scheduler` so tests can
drive time by hand.  The default schedules on the running asyncio loop, which
keeps every callback on the single serialized event-loop thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class Cancelable(Protocol):
    """Handle returned by a :data:`Scheduler` (e.g. ``asyncio.TimerHandle``)."""

    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Cancelable]
"""``scheduler(delay_seconds, callback) -> handle``."""


def loop_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Schedule *callback* on the running event loop after *delay* seconds."""
    return asyncio.get_running_loop().call_later(delay, callback)
