"""HTTP agent client with retry."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, Field, SecretStr, field_validator

from voicebridge.agent.base import (
    AgentAPIError,
    AgentClient,
    AgentError,
    AgentHTTPError,
    GatewayTimeoutError,
    InvalidRequestError,
    InvalidResponseError,
)
from voicebridge.core.retry import RetryPolicy, retry_with_backoff
from voicebridge.models.agent_event import AgentEvent
from voicebridge.telemetry.base import Attr, SpanKind, TelemetryProvider
from voicebridge.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger(__name__)

_GATEWAY_TIMEOUT_STATUSES = frozenset({502, 504})


class AgentClientConfig(BaseModel):
    """Connection settings for the HTTP agent.

    Attributes:
        base_url: Agent root URL; ``/chat``, ``/health`` and ``/events``
            are resolved against it.
        token: Bearer token sent on every request.
        user_id: Value of the user-id header.
        session_id: Conversation identifier sent with messages and event
            queries.
        user_id_header: Name of the user-id header.
        timeout: Request timeout in seconds.  Agents may take minutes to
            answer, hence the large default.
        poll_interval_seconds: Interval between event polls.
        event_limit: Maximum events per poll.
    """

    base_url: str
    token: SecretStr
    user_id: str = "voicebridge-user"
    session_id: str = "voicebridge-user"
    user_id_header: str = "x-ios-user-id"
    timeout: float = Field(default=3600.0, gt=0.0)
    poll_interval_seconds: float = Field(default=3.0, gt=0.0)
    event_limit: int = Field(default=50, ge=1)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"base_url must be an http(s) URL with a host, got {v!r}")
        return v.rstrip("/")


class HTTPAgentClient(AgentClient):
    """Posts messages to ``/chat`` and reads ``/events``."""

    def __init__(
        self,
        config: AgentClientConfig,
        *,
        retry_policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        self._config = config
        self._retry_policy = retry_policy or RetryPolicy()
        self._client = client
        self._telemetry = telemetry or NoopTelemetryProvider()

    @property
    def name(self) -> str:
        return "http-agent"

    @property
    def config(self) -> AgentClientConfig:
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers={"Authorization": f"Bearer {self._config.token.get_secret_value()}"},
                timeout=self._config.timeout,
            )
        return self._client

    def _user_headers(self) -> dict[str, str]:
        return {self._config.user_id_header: self._config.user_id}

    async def send_message(self, message: str) -> str:
        if not message.strip():
            raise InvalidRequestError("message must not be empty")
        with self._telemetry.span(
            SpanKind.AGENT_SEND, "agent.send", attributes={Attr.PROVIDER: self.name}
        ):
            return await retry_with_backoff(
                self._send_request,
                self._retry_policy,
                message,
                non_retryable=(InvalidRequestError,),
                slow_retry=(GatewayTimeoutError,),
            )

    async def _send_request(self, message: str) -> str:
        payload = {"message": message, "sessionId": self._config.session_id}
        logger.debug("Sending message to agent (%d chars)", len(message))
        resp = await self._request("POST", "/chat", json=payload, headers=self._user_headers())

        if resp.status_code in _GATEWAY_TIMEOUT_STATUSES:
            raise GatewayTimeoutError(
                f"gateway timeout (HTTP {resp.status_code})", status_code=resp.status_code
            )
        if resp.status_code == 400:
            raise InvalidRequestError("agent rejected the request (HTTP 400)", status_code=400)
        data = self._json(resp)
        error = data.get("error")
        if isinstance(error, str):
            raise AgentAPIError(error, status_code=resp.status_code)
        reply = data.get("reply")
        if resp.status_code != 200 or not isinstance(reply, str):
            raise AgentHTTPError(
                f"agent request failed with HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return reply

    async def health_check(self) -> bool:
        resp = await self._request("GET", "/health")
        return resp.status_code == 200

    async def fetch_events(self, since_ms: int) -> list[AgentEvent]:
        params = {
            "sessionId": self._config.session_id,
            "since": since_ms,
            "limit": self._config.event_limit,
        }
        resp = await self._request("GET", "/events", params=params, headers=self._user_headers())
        if resp.status_code != 200:
            raise AgentHTTPError(
                f"event fetch failed with HTTP {resp.status_code}", status_code=resp.status_code
            )
        items = self._json(resp).get("events")
        if not isinstance(items, list):
            raise InvalidResponseError("event response has no 'events' list")
        events = [ev for ev in (AgentEvent.from_payload(item) for item in items) if ev]
        if len(events) < len(items):
            logger.debug("Skipped %d malformed events", len(items) - len(events))
        return events

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = self._get_client()
        try:
            return await client.request(method, url, **kwargs)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidRequestError(f"invalid agent URL: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise AgentError("agent request timed out") from exc
        except httpx.HTTPError as exc:
            raise AgentError(f"agent request failed: {exc}") from exc

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as exc:
            raise InvalidResponseError(
                "agent response is not JSON", status_code=resp.status_code
            ) from exc
        if not isinstance(data, dict):
            raise InvalidResponseError(
                "agent response is not a JSON object", status_code=resp.status_code
            )
        return data

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
