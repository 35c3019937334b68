"""Agent client ABC and errors."""

from __future__ import annotations

from abc import ABC, abstractmethod

from voicebridge.models.agent_event import AgentEvent


class AgentError(Exception):
    """Error delivering a message to the agent."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestError(AgentError):
    """The request itself is malformed.  Never retried."""


class GatewayTimeoutError(AgentError):
    """A gateway in front of the agent gave up (HTTP 502/504).

    The agent is most likely still processing, so retries wait longer.
    """


class AgentAPIError(AgentError):
    """The agent answered with an ``error`` string."""


class AgentHTTPError(AgentError):
    """Non-200 response or a response without a ``reply``."""


class InvalidResponseError(AgentError):
    """Response body was not the expected JSON shape."""


class AgentClient(ABC):
    """Conversational agent that receives finalized user text."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def send_message(self, message: str) -> str:
        """Deliver *message* and return the agent's reply.

        Implementations retry transient failures themselves.
        """
        ...

    async def health_check(self) -> bool:
        """Return True if the agent is reachable and healthy."""
        return True

    async def fetch_events(self, since_ms: int) -> list[AgentEvent]:
        """Return asynchronous events newer than *since_ms*."""
        return []

    async def close(self) -> None:  # noqa: B027
        """Release resources."""
