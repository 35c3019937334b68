"""Linear interpolation resampler provider."""

from __future__ import annotations

from collections.abc import Sequence

from voicebridge.audio.resampler.base import ResamplerProvider


def output_length(n_samples: int, source_rate: int, target_rate: int) -> int:
    """Number of output samples for *n_samples* input samples.

    ``floor((N - 1) * target / source) + 1``; the first and last input
    samples both map onto output samples.
    """
    if n_samples <= 0:
        return 0
    return (n_samples - 1) * target_rate // source_rate + 1


class LinearResamplerProvider(ResamplerProvider):
    """Resampler using linear interpolation in pure Python.

    Each chunk is converted independently; no look-ahead is carried across
    calls.  Good enough for feeding a gating recognizer, not for playback.
    """

    @property
    def name(self) -> str:
        return "linear"

    def resample(
        self,
        samples: Sequence[float],
        source_rate: int,
        target_rate: int,
    ) -> list[float]:
        if source_rate <= 0 or target_rate <= 0:
            raise ValueError("sample rates must be positive")
        if source_rate == target_rate or len(samples) <= 1:
            return list(samples)

        n_out = output_length(len(samples), source_rate, target_rate)
        max_index = len(samples) - 1
        step = source_rate / target_rate
        out: list[float] = []
        for i in range(n_out):
            pos = i * step
            left = min(max_index, int(pos))
            right = min(max_index, left + 1)
            frac = pos - left
            a = samples[left]
            out.append(a + (samples[right] - a) * frac)
        return out
