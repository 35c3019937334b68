"""Conversational agent clients."""

from voicebridge.agent.base import (
    AgentAPIError,
    AgentClient,
    AgentError,
    AgentHTTPError,
    GatewayTimeoutError,
    InvalidRequestError,
    InvalidResponseError,
)
from voicebridge.agent.http import AgentClientConfig, HTTPAgentClient
from voicebridge.agent.mock import MockAgentClient
from voicebridge.agent.poller import EventCallback, EventPoller

__all__ = [
    "AgentAPIError",
    "AgentClient",
    "AgentClientConfig",
    "AgentError",
    "AgentHTTPError",
    "EventCallback",
    "EventPoller",
    "GatewayTimeoutError",
    "HTTPAgentClient",
    "InvalidRequestError",
    "InvalidResponseError",
    "MockAgentClient",
]
