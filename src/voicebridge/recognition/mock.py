"""Mock gating recognizer for testing."""

from __future__ import annotations

from collections.abc import Sequence

from voicebridge.recognition.base import GatingRecognizer, ResultCallback


class MockGatingRecognizer(GatingRecognizer):
    """Gating recognizer that reports a fixed transcript.

    With ``transcript`` set, every ``accept()`` immediately reports it as a
    partial result.  Tests can also push results by hand with :meth:`emit`,
    including through the callback of an already-ended session.
    """

    def __init__(
        self,
        transcript: str | None = "hello",
        *,
        available: bool = True,
        sample_rate: int = 16000,
    ) -> None:
        self.transcript = transcript
        self.available = available
        self._sample_rate = sample_rate
        self.samples: list[float] = []
        self.callbacks: list[ResultCallback] = []
        self.start_count = 0
        self.stop_count = 0
        self.closed = False
        self._active: ResultCallback | None = None

    @property
    def name(self) -> str:
        return "MockGatingRecognizer"

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def is_available(self) -> bool:
        return self.available

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def start(self, on_result: ResultCallback) -> None:
        self.start_count += 1
        self.callbacks.append(on_result)
        self._active = on_result

    def accept(self, samples: Sequence[float]) -> None:
        self.samples.extend(samples)
        if self._active is not None and self.transcript:
            self._active(self.transcript, False)

    def stop(self) -> None:
        self.stop_count += 1
        self._active = None

    def emit(self, text: str, *, is_final: bool = False, session_index: int = -1) -> None:
        """Deliver *text* through the callback of the given session."""
        self.callbacks[session_index](text, is_final)

    def close(self) -> None:
        self.closed = True
