"""Resampler provider ABC."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class ResamplerProvider(ABC):
    """Abstract base class for float-sample rate converters.

    The target rate is passed per call because the source rate is only
    known once the device announces its codec.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g. 'linear')."""
        ...

    @abstractmethod
    def resample(
        self,
        samples: Sequence[float],
        source_rate: int,
        target_rate: int,
    ) -> list[float]:
        """Convert *samples* from *source_rate* to *target_rate*.

        Returns a copy of the input when the rates already match.
        """
        ...

    def reset(self) -> None:  # noqa: B027
        """Reset internal state."""

    def close(self) -> None:  # noqa: B027
        """Release resources."""
