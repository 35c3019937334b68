"""WAV container encoding for transcription uploads."""

from __future__ import annotations

import io
import wave
from collections.abc import Sequence

from voicebridge.audio.pcm import float_to_pcm16le

WAV_HEADER_BYTES = 44


def encode_wav(samples: Sequence[float], sample_rate: int) -> bytes:
    """Encode float samples as a mono 16-bit PCM RIFF/WAVE file.

    The header is the canonical 44-byte PCM layout (``ChunkSize`` =
    36 + data size, ``fmt `` chunk of 16 bytes, ``AudioFormat`` = 1).
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(float_to_pcm16le(samples))
    return buf.getvalue()
