"""Voice activity segmentation."""

from voicebridge.vad.base import VADConfig, VADEvent, VADEventType, VADPhase
from voicebridge.vad.segmenter import VADSegmenter

__all__ = [
    "VADConfig",
    "VADEvent",
    "VADEventType",
    "VADPhase",
    "VADSegmenter",
]
