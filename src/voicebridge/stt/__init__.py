"""Remote transcription providers."""

from voicebridge.stt.base import (
    AudioTooShortError,
    HallucinationDetectedError,
    InvalidResponseError,
    NoSpeechError,
    STTProvider,
    TranscriptionAPIError,
    TranscriptionError,
    TranscriptionHTTPError,
    TranscriptionResult,
)
from voicebridge.stt.filters import DEFAULT_HALLUCINATION_PATTERNS, HallucinationFilter
from voicebridge.stt.mock import MockSTTProvider
from voicebridge.stt.whisper import WhisperConfig, WhisperSTTProvider

__all__ = [
    "DEFAULT_HALLUCINATION_PATTERNS",
    "AudioTooShortError",
    "HallucinationDetectedError",
    "HallucinationFilter",
    "InvalidResponseError",
    "MockSTTProvider",
    "NoSpeechError",
    "STTProvider",
    "TranscriptionAPIError",
    "TranscriptionError",
    "TranscriptionHTTPError",
    "TranscriptionResult",
    "WhisperConfig",
    "WhisperSTTProvider",
]
