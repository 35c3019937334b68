"""Stream-level errors."""

from __future__ import annotations


class VoiceBridgeError(Exception):
    """Base exception for stream and bridge errors."""


class StreamNotReadyError(VoiceBridgeError):
    """The stream cannot start yet, e.g. the codec was never announced."""


class UnsupportedCodecError(VoiceBridgeError):
    """The device announced a codec id this library cannot decode."""

    def __init__(self, codec_id: int) -> None:
        super().__init__(f"unsupported codec id {codec_id} (PCM16 only)")
        self.codec_id = codec_id


class RecognizerUnavailableError(VoiceBridgeError):
    """The gating recognizer cannot run, so noise cannot be filtered."""


class ConfigurationError(VoiceBridgeError):
    """Required configuration is missing or invalid."""
