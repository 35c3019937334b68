"""Background polling of asynchronous agent events."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from voicebridge.agent.base import AgentClient
from voicebridge.models.agent_event import AgentEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[AgentEvent], None]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class EventPoller:
    """Polls :meth:`AgentClient.fetch_events` on a fixed interval.

    The high-water timestamp starts *lookback_ms* before "now" so events
    emitted just before the poller started are still picked up.  Failed
    polls are logged at DEBUG and the loop keeps going.
    """

    def __init__(
        self,
        client: AgentClient,
        on_event: EventCallback,
        *,
        interval: float = 3.0,
        lookback_ms: int = 5000,
        clock_ms: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._client = client
        self._on_event = on_event
        self._interval = interval
        self._lookback_ms = lookback_ms
        self._clock_ms = clock_ms
        self._since_ms = clock_ms() - lookback_ms
        self._task: asyncio.Task[None] | None = None
        self._failures = 0

    @property
    def since_ms(self) -> int:
        """Timestamp of the newest event seen so far."""
        return self._since_ms

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def failures(self) -> int:
        """Number of failed polls since start."""
        return self._failures

    def start(self) -> None:
        """Start the polling loop.  Restarting resets the high-water mark."""
        if self._task is not None:
            self._task.cancel()
        self._since_ms = self._clock_ms() - self._lookback_ms
        self._failures = 0
        self._task = asyncio.get_running_loop().create_task(self._run(), name="agent-event-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def poll_once(self) -> list[AgentEvent]:
        """Fetch and deliver one page of events."""
        events = await self._client.fetch_events(self._since_ms)
        for event in events:
            if event.timestamp > self._since_ms:
                self._since_ms = event.timestamp
            self._on_event(event)
        return events

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.poll_once()
            except Exception as exc:
                self._failures += 1
                logger.debug("Event poll failed: %s", exc)
