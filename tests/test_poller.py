"""Tests for EventPoller."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from voicebridge.agent.mock import MockAgentClient
from voicebridge.agent.poller import EventPoller
from voicebridge.models.agent_event import AgentEvent

NOW_MS = 1_700_000_000_000


def _event(ts: int, text: str = "done") -> AgentEvent:
    return AgentEvent(type="subagent", text=text, timestamp=ts)


class TestEventPoller:
    def test_initial_lookback(self) -> None:
        poller = EventPoller(MockAgentClient(), lambda e: None, clock_ms=lambda: NOW_MS)
        assert poller.since_ms == NOW_MS - 5000
        assert not poller.is_running

    def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError):
            EventPoller(MockAgentClient(), lambda e: None, interval=0)

    async def test_poll_once_advances_high_water_mark(self) -> None:
        agent = MockAgentClient(
            events=[_event(NOW_MS - 10_000, "too old"), _event(NOW_MS - 1000), _event(NOW_MS - 2000)]
        )
        received: list[AgentEvent] = []
        poller = EventPoller(agent, received.append, clock_ms=lambda: NOW_MS)

        events = await poller.poll_once()

        assert [e.timestamp for e in events] == [NOW_MS - 1000, NOW_MS - 2000]
        assert received == events
        assert poller.since_ms == NOW_MS - 1000
        assert agent.fetch_calls == [NOW_MS - 5000]

    async def test_second_poll_sees_only_newer(self) -> None:
        agent = MockAgentClient(events=[_event(NOW_MS - 1000)])
        received: list[AgentEvent] = []
        poller = EventPoller(agent, received.append, clock_ms=lambda: NOW_MS)

        await poller.poll_once()
        agent.events.append(_event(NOW_MS + 500, "later"))
        await poller.poll_once()

        assert [e.text for e in received] == ["done", "later"]
        assert agent.fetch_calls == [NOW_MS - 5000, NOW_MS - 1000]

    async def test_poll_once_propagates_errors(self) -> None:
        agent = MockAgentClient()
        agent.fetch_events = AsyncMock(side_effect=RuntimeError("down"))  # type: ignore[method-assign]
        poller = EventPoller(agent, lambda e: None)
        with pytest.raises(RuntimeError):
            await poller.poll_once()

    async def test_loop_keeps_going_after_failures(self) -> None:
        agent = MockAgentClient()
        agent.fetch_events = AsyncMock(  # type: ignore[method-assign]
            side_effect=[RuntimeError("down"), RuntimeError("down"), [_event(NOW_MS + 1)]]
            + [[] for _ in range(100)]
        )
        received: list[AgentEvent] = []
        poller = EventPoller(agent, received.append, interval=0.001, clock_ms=lambda: NOW_MS)

        poller.start()
        assert poller.is_running
        for _ in range(200):
            if received:
                break
            await asyncio.sleep(0.001)
        await poller.stop()

        assert poller.failures == 2
        assert [e.timestamp for e in received] == [NOW_MS + 1]
        assert not poller.is_running

    async def test_stop_without_start(self) -> None:
        poller = EventPoller(MockAgentClient(), lambda e: None)
        await poller.stop()
        assert not poller.is_running

    async def test_restart_resets_since(self) -> None:
        now = [NOW_MS]
        agent = MockAgentClient(events=[_event(NOW_MS - 100)])
        poller = EventPoller(agent, lambda e: None, interval=60, clock_ms=lambda: now[0])
        await poller.poll_once()
        assert poller.since_ms == NOW_MS - 100

        now[0] = NOW_MS + 60_000
        poller.start()
        assert poller.since_ms == NOW_MS + 55_000
        await poller.stop()
