"""Signal conditioning: high-pass filter and smoothed RMS level.

Both stages keep state between chunks for the life of a stream.  The
smoothed RMS is the externally visible audio level and the VAD input.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass


def rms(samples: Sequence[float]) -> float:
    """Root-mean-square of float samples (0.0 for an empty chunk)."""
    if not samples:
        return 0.0
    return math.sqrt(math.fsum(s * s for s in samples) / len(samples))


@dataclass
class ConditionerConfig:
    """Configuration for :class:`SignalConditioner`."""

    high_pass_alpha: float = 0.94
    """First-order high-pass coefficient (~300 Hz cutoff at 8 kHz)."""

    smoothing_factor: float = 0.1
    """Weight of the newest chunk in the RMS moving average."""


class HighPassFilter:
    """First-order IIR high-pass: ``y[i] = a * (y[i-1] + x[i] - x[i-1])``.

    Removes low-frequency rumble (air conditioning, handling noise) before
    the energy estimate.
    """

    def __init__(self, alpha: float = 0.94) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self._alpha = alpha
        self.prev_input = 0.0
        self.prev_output = 0.0

    def process(self, samples: Sequence[float]) -> list[float]:
        alpha = self._alpha
        prev_in = self.prev_input
        prev_out = self.prev_output
        out: list[float] = []
        for x in samples:
            prev_out = alpha * (prev_out + x - prev_in)
            prev_in = x
            out.append(prev_out)
        self.prev_input = prev_in
        self.prev_output = prev_out
        return out

    def reset(self) -> None:
        self.prev_input = 0.0
        self.prev_output = 0.0


class SignalConditioner:
    """High-pass filter followed by an exponentially smoothed RMS estimate."""

    def __init__(self, config: ConditionerConfig | None = None) -> None:
        self._config = config or ConditionerConfig()
        self._filter = HighPassFilter(self._config.high_pass_alpha)
        self._level = 0.0

    @property
    def level(self) -> float:
        """Current smoothed RMS of the filtered signal."""
        return self._level

    @property
    def filter_memory(self) -> tuple[float, float]:
        """``(prev_input, prev_output)`` of the high-pass filter."""
        return (self._filter.prev_input, self._filter.prev_output)

    def process(self, samples: Sequence[float]) -> list[float]:
        """Filter *samples* and fold their RMS into the smoothed level.

        Returns the filtered samples.  An empty chunk leaves the level
        untouched.
        """
        if not samples:
            return []
        filtered = self._filter.process(samples)
        k = self._config.smoothing_factor
        self._level = k * rms(filtered) + (1.0 - k) * self._level
        return filtered

    def reset(self) -> None:
        """Clear filter memory and the smoothed level."""
        self._filter.reset()
        self._level = 0.0
