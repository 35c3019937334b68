"""VAD segmenter types: phases, events and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, unique


@unique
class VADPhase(StrEnum):
    """Segmentation phase of the current stream."""

    WAITING = "waiting"
    SPEAKING = "speaking"
    SILENCE = "silence"


@unique
class VADEventType(StrEnum):
    """Types of VAD transitions."""

    SPEECH_START = "speech_start"
    """waiting -> speaking: open a new utterance."""

    SILENCE_START = "silence_start"
    """speaking -> silence: finalize timer armed."""

    SPEECH_RESUME = "speech_resume"
    """silence -> speaking: finalize timer canceled."""

    SPEECH_END = "speech_end"
    """silence timer fired: the utterance is complete."""


@dataclass
class VADEvent:
    """A phase transition produced by the segmenter."""

    type: VADEventType
    """The type of transition."""

    level: float
    """Window-averaged energy that caused the transition."""

    timestamp: float
    """Clock reading at the transition."""


@dataclass
class VADConfig:
    """Configuration for :class:`~voicebridge.vad.segmenter.VADSegmenter`.

    The on/off thresholds form a Schmitt trigger; ``off_threshold`` must be
    strictly below ``on_threshold``.
    """

    on_threshold: float = 0.015
    """Window average at or above which voice is present."""

    off_threshold: float = 0.010
    """Window average below which speech may end."""

    holdover_seconds: float = 1.0
    """Minimum time since the last qualifying energy before silence."""

    silence_seconds: float = 2.0
    """Silence that must elapse (uninterrupted) to finalize an utterance."""

    window_size: int = 45
    """Number of level samples averaged to drive transitions."""

    def __post_init__(self) -> None:
        if self.off_threshold >= self.on_threshold:
            raise ValueError(
                f"off_threshold ({self.off_threshold}) must be below "
                f"on_threshold ({self.on_threshold})"
            )
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if self.holdover_seconds < 0 or self.silence_seconds < 0:
            raise ValueError("holdover_seconds and silence_seconds must be >= 0")
