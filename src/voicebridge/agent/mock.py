"""Mock agent client for testing."""

from __future__ import annotations

from voicebridge.agent.base import AgentClient
from voicebridge.models.agent_event import AgentEvent


class MockAgentClient(AgentClient):
    """Records messages and answers from a canned reply list.

    An entry in *replies* that is an exception instance is raised instead.
    """

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        *,
        events: list[AgentEvent] | None = None,
        healthy: bool = True,
    ) -> None:
        self.replies = replies or ["OK"]
        self.events = list(events or [])
        self.healthy = healthy
        self.messages: list[str] = []
        self.fetch_calls: list[int] = []
        self.closed = False
        self._index = 0

    async def send_message(self, message: str) -> str:
        self.messages.append(message)
        reply = self.replies[self._index % len(self.replies)]
        self._index += 1
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def health_check(self) -> bool:
        return self.healthy

    async def fetch_events(self, since_ms: int) -> list[AgentEvent]:
        self.fetch_calls.append(since_ms)
        return [ev for ev in self.events if ev.timestamp > since_ms]

    async def close(self) -> None:
        self.closed = True
