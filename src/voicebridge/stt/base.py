"""Transcription provider ABC, result type and errors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass
class TranscriptionResult:
    """Result from a remote transcription call."""

    text: str
    language: str | None = None
    duration_seconds: float | None = None


class TranscriptionError(Exception):
    """Error from a transcription call.

    Attributes:
        retryable: Whether the caller may retry the request.
        status_code: HTTP status code from the service, if available.
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class NoSpeechError(TranscriptionError):
    """The audio held no usable speech.  Treat as "no utterance", not a failure."""


class AudioTooShortError(NoSpeechError):
    """Audio shorter than the minimum duration; no request was sent."""

    def __init__(self, duration_seconds: float, min_duration_seconds: float) -> None:
        super().__init__(
            f"audio too short: {duration_seconds:.2f}s < {min_duration_seconds:.2f}s"
        )
        self.duration_seconds = duration_seconds
        self.min_duration_seconds = min_duration_seconds


class HallucinationDetectedError(NoSpeechError):
    """The service returned empty text or a known hallucination phrase."""

    def __init__(self, text: str) -> None:
        super().__init__(f"hallucination discarded: {text!r}")
        self.text = text


class TranscriptionAPIError(TranscriptionError):
    """The service answered with an ``error.message`` payload."""


class TranscriptionHTTPError(TranscriptionError):
    """Non-200 response without a usable ``text`` field."""


class InvalidResponseError(TranscriptionError):
    """Response body was not a JSON object."""


class STTProvider(ABC):
    """Speech-to-text provider for complete utterances."""

    @property
    def name(self) -> str:
        """Provider name (e.g. 'whisper')."""
        return self.__class__.__name__

    @abstractmethod
    async def transcribe(
        self, samples: Sequence[float], sample_rate: int
    ) -> TranscriptionResult:
        """Transcribe one utterance.

        Args:
            samples: Mono float samples in [-1, 1].
            sample_rate: Sample rate of *samples* in Hz.

        Returns:
            TranscriptionResult with the cleaned text.

        Raises:
            NoSpeechError: The audio held no usable speech.
            TranscriptionError: The request failed.
        """
        ...

    async def warmup(self) -> None:  # noqa: B027
        """Prepare connections so the first call is fast."""

    async def close(self) -> None:  # noqa: B027
        """Release resources."""
