"""Mock speech-to-text provider for testing."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from voicebridge.stt.base import STTProvider, TranscriptionResult


@dataclass
class TranscribeCall:
    """Record of a single transcribe() invocation."""

    samples: list[float]
    sample_rate: int


class MockSTTProvider(STTProvider):
    """Mock speech-to-text for testing.

    Cycles through *transcripts*.  An entry that is an exception instance is
    raised instead of returned.
    """

    def __init__(self, transcripts: list[str | Exception] | None = None) -> None:
        self.transcripts = transcripts or ["Hello", "How can I help you?"]
        self.calls: list[TranscribeCall] = []
        self.closed = False
        self._index = 0

    async def transcribe(
        self, samples: Sequence[float], sample_rate: int
    ) -> TranscriptionResult:
        self.calls.append(TranscribeCall(samples=list(samples), sample_rate=sample_rate))
        item = self.transcripts[self._index % len(self.transcripts)]
        self._index += 1
        if isinstance(item, Exception):
            raise item
        return TranscriptionResult(text=item, duration_seconds=len(samples) / sample_rate)

    async def close(self) -> None:
        self.closed = True
