"""Audio decoding, conditioning and buffering."""

from voicebridge.audio.conditioner import (
    ConditionerConfig,
    HighPassFilter,
    SignalConditioner,
    rms,
)
from voicebridge.audio.pcm import PCMDecoder, float_to_pcm16le, pcm16le_to_float
from voicebridge.audio.preroll import PreRollBuffer
from voicebridge.audio.wav import WAV_HEADER_BYTES, encode_wav

__all__ = [
    "WAV_HEADER_BYTES",
    "ConditionerConfig",
    "HighPassFilter",
    "PCMDecoder",
    "PreRollBuffer",
    "SignalConditioner",
    "encode_wav",
    "float_to_pcm16le",
    "pcm16le_to_float",
    "rms",
]
