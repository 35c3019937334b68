"""Mock resampler provider for testing."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from voicebridge.audio.resampler.base import ResamplerProvider


@dataclass
class ResampleCall:
    """Record of a single resample() invocation."""

    samples: list[float]
    source_rate: int
    target_rate: int


class MockResamplerProvider(ResamplerProvider):
    """Mock resampler that passes samples through unchanged and records calls."""

    def __init__(self) -> None:
        self.calls: list[ResampleCall] = []
        self.reset_count: int = 0
        self.closed: bool = False

    @property
    def name(self) -> str:
        return "mock"

    def resample(
        self,
        samples: Sequence[float],
        source_rate: int,
        target_rate: int,
    ) -> list[float]:
        self.calls.append(
            ResampleCall(samples=list(samples), source_rate=source_rate, target_rate=target_rate)
        )
        return list(samples)

    def reset(self) -> None:
        self.reset_count += 1

    def close(self) -> None:
        self.closed = True
