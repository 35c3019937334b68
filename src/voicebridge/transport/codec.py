"""Codec identity announced by the audio format characteristic."""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class CodecId(IntEnum):
    """Codec ids understood by the stream (PCM only)."""

    PCM16_16K = 0
    PCM16_8K = 1


_SAMPLE_RATES: dict[CodecId, int] = {
    CodecId.PCM16_16K: 16_000,
    CodecId.PCM16_8K: 8_000,
}


def is_supported_codec(codec_id: int) -> bool:
    """Return True if *codec_id* is one of the PCM16 codecs."""
    return codec_id in CodecId._value2member_map_


def sample_rate_for(codec_id: int) -> int:
    """Source sample rate in Hz for *codec_id*.

    Raises:
        ValueError: If the codec id is not supported.
    """
    if not is_supported_codec(codec_id):
        raise ValueError(f"unsupported codec id: {codec_id}")
    return _SAMPLE_RATES[CodecId(codec_id)]


def parse_codec_value(value: bytes) -> int:
    """Extract the codec id from the raw format characteristic value."""
    if not value:
        raise ValueError("empty codec characteristic value")
    return value[0]
