"""OpenAI Whisper transcription provider."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, Field, SecretStr, field_validator

from voicebridge.audio.wav import encode_wav
from voicebridge.stt.base import (
    AudioTooShortError,
    HallucinationDetectedError,
    InvalidResponseError,
    STTProvider,
    TranscriptionAPIError,
    TranscriptionError,
    TranscriptionHTTPError,
    TranscriptionResult,
)
from voicebridge.stt.filters import DEFAULT_HALLUCINATION_PATTERNS, HallucinationFilter
from voicebridge.telemetry.base import Attr, SpanKind, TelemetryProvider
from voicebridge.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger(__name__)


class WhisperConfig(BaseModel):
    """Whisper transcription configuration.

    Attributes:
        api_key: Bearer token for the transcription service.
        base_url: API root; ``/audio/transcriptions`` is appended.
        model: Transcription model identifier.
        language: Fixed language hint.  Pinning it keeps the model from
            drifting into another language on noisy input.
        min_duration_seconds: Shorter audio is rejected without a request.
        hallucination_patterns: Phrases that mark a result as fabricated.
        timeout: HTTP request timeout in seconds.
    """

    api_key: SecretStr
    base_url: str = "https://api.openai.com/v1"
    model: str = "whisper-1"
    language: str = "ja"
    min_duration_seconds: float = Field(default=0.5, ge=0.0)
    hallucination_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HALLUCINATION_PATTERNS)
    )
    timeout: float = 60.0

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"base_url must be an http(s) URL with a host, got {v!r}")
        return v.rstrip("/")


class WhisperSTTProvider(STTProvider):
    """Sends each utterance once as a WAV upload; no retries at this layer."""

    def __init__(
        self,
        config: WhisperConfig,
        *,
        client: httpx.AsyncClient | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._filter = HallucinationFilter(config.hallucination_patterns)
        self._telemetry = telemetry or NoopTelemetryProvider()

    @property
    def name(self) -> str:
        return "whisper"

    @property
    def config(self) -> WhisperConfig:
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers={
                    "Authorization": f"Bearer {self._config.api_key.get_secret_value()}",
                },
                timeout=self._config.timeout,
            )
        return self._client

    async def transcribe(
        self, samples: Sequence[float], sample_rate: int
    ) -> TranscriptionResult:
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        duration = len(samples) / sample_rate
        logger.debug(
            "Transcribing %d samples (%.2fs) at %dHz", len(samples), duration, sample_rate
        )
        if duration < self._config.min_duration_seconds:
            logger.debug("Audio too short, rejecting")
            raise AudioTooShortError(duration, self._config.min_duration_seconds)

        wav = encode_wav(samples, sample_rate)
        attrs = {
            Attr.PROVIDER: self.name,
            Attr.MODEL: self._config.model,
            Attr.AUDIO_SECONDS: duration,
        }
        span_id = self._telemetry.start_span(
            SpanKind.STT_TRANSCRIBE, "stt.whisper", attributes=attrs
        )
        t0 = time.monotonic()
        try:
            data, status_code = await self._post(wav)
            text = self._parse_response(data, status_code)
            cleaned = self._filter(text)
        except HallucinationDetectedError:
            self._telemetry.end_span(span_id, attributes={Attr.STT_OUTCOME: "hallucination"})
            raise
        except Exception as exc:
            self._telemetry.end_span(
                span_id,
                status="error",
                error_message=str(exc),
                attributes={Attr.STT_OUTCOME: "error"},
            )
            raise
        self._telemetry.end_span(
            span_id,
            attributes={
                Attr.STT_OUTCOME: "text",
                Attr.STT_TEXT_LENGTH: len(cleaned),
                Attr.STT_LANGUAGE: self._config.language,
                Attr.DURATION_MS: (time.monotonic() - t0) * 1000,
            },
        )
        logger.debug("Transcription result: %r", cleaned)
        return TranscriptionResult(
            text=cleaned, language=self._config.language, duration_seconds=duration
        )

    async def _post(self, wav: bytes) -> tuple[Any, int]:
        try:
            resp = await self._get_client().post(
                "/audio/transcriptions",
                data={"model": self._config.model, "language": self._config.language},
                files={"file": ("speech.wav", wav, "audio/wav")},
            )
        except httpx.InvalidURL as exc:
            raise TranscriptionError(f"invalid transcription URL: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise TranscriptionError("transcription request timed out", retryable=True) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionError(f"transcription request failed: {exc}") from exc

        logger.debug("Transcription response status %d", resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise InvalidResponseError(
                "transcription response is not JSON", status_code=resp.status_code
            ) from exc
        return data, resp.status_code

    @staticmethod
    def _parse_response(data: Any, status_code: int) -> str:
        if not isinstance(data, dict):
            raise InvalidResponseError(
                "transcription response is not a JSON object", status_code=status_code
            )
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            raise TranscriptionAPIError(error["message"], status_code=status_code)
        text = data.get("text")
        if status_code != 200 or not isinstance(text, str):
            raise TranscriptionHTTPError(
                f"transcription failed with HTTP {status_code}",
                status_code=status_code,
                retryable=status_code >= 500,
            )
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
