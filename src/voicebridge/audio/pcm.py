"""PCM16LE decoding with odd-byte carry-over across notifications."""

from __future__ import annotations

import struct
from collections.abc import Sequence

_SCALE = 32768.0


def pcm16le_to_float(data: bytes) -> list[float]:
    """Convert PCM16LE bytes to floats in [-1.0, 1.0).

    A trailing odd byte is ignored; use :class:`PCMDecoder` when payloads
    can split a sample.
    """
    n_samples = len(data) // 2
    if n_samples == 0:
        return []
    samples = struct.unpack(f"<{n_samples}h", data[: n_samples * 2])
    return [s / _SCALE for s in samples]


def float_to_pcm16le(samples: Sequence[float]) -> bytes:
    """Convert float samples to PCM16LE bytes.

    Values are clamped to [-1.0, 1.0], scaled by 32767 and truncated toward
    zero.
    """
    if not samples:
        return b""
    ints = [int(max(-1.0, min(1.0, s)) * 32767.0) for s in samples]
    return struct.pack(f"<{len(ints)}h", *ints)


class PCMDecoder:
    """Stateful PCM16LE decoder.

    A notification may end in the middle of a sample.  The dangling byte is
    held back and prepended to the next payload, so no byte is ever lost as
    long as payloads arrive in order.
    """

    def __init__(self) -> None:
        self._pending: int | None = None

    @property
    def pending_byte(self) -> int | None:
        """The carried-over odd byte, if any."""
        return self._pending

    def decode(self, payload: bytes) -> list[float]:
        """Decode *payload*, returning zero or more normalized samples."""
        if self._pending is not None:
            merged = bytes((self._pending,)) + payload
            self._pending = None
        else:
            merged = payload

        if len(merged) % 2:
            self._pending = merged[-1]
            merged = merged[:-1]

        return pcm16le_to_float(merged)

    def reset(self) -> None:
        """Drop any carried-over byte."""
        self._pending = None
