"""Application configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from voicebridge.agent.http import AgentClientConfig
from voicebridge.core.errors import ConfigurationError
from voicebridge.core.retry import RetryPolicy
from voicebridge.core.stream import StreamConfig
from voicebridge.stt.whisper import WhisperConfig

ENV_PREFIX = "VOICEBRIDGE_"


class BridgeConfig(BaseModel):
    """Everything needed to build a :class:`~voicebridge.VoiceBridge`."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    whisper: WhisperConfig
    agent: AgentClientConfig
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    poll_events: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeConfig:
        """Load configuration from environment variables.

        Required: ``OPENAI_API_KEY``, ``VOICEBRIDGE_AGENT_URL`` and
        ``VOICEBRIDGE_AGENT_TOKEN``.  Optional: ``VOICEBRIDGE_LANGUAGE``,
        ``VOICEBRIDGE_WHISPER_MODEL``, ``VOICEBRIDGE_WHISPER_URL``,
        ``VOICEBRIDGE_USER_ID``, ``VOICEBRIDGE_SESSION_ID``,
        ``VOICEBRIDGE_POLL_EVENTS`` (``0`` disables polling).

        Raises:
            ConfigurationError: A required variable is missing.
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(name, "").strip()
            if not value:
                raise ConfigurationError(f"environment variable {name} is required")
            return value

        def optional(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, "").strip() or default

        whisper = WhisperConfig(
            api_key=SecretStr(required("OPENAI_API_KEY")),
            base_url=optional("WHISPER_URL", "https://api.openai.com/v1"),
            model=optional("WHISPER_MODEL", "whisper-1"),
            language=optional("LANGUAGE", "ja"),
        )
        user_id = optional("USER_ID", "voicebridge-user")
        agent = AgentClientConfig(
            base_url=required(ENV_PREFIX + "AGENT_URL"),
            token=SecretStr(required(ENV_PREFIX + "AGENT_TOKEN")),
            user_id=user_id,
            session_id=optional("SESSION_ID", user_id),
        )
        return cls(
            whisper=whisper,
            agent=agent,
            poll_events=optional("POLL_EVENTS", "1") != "0",
        )
