"""Gating recognizer provider ABC.

A gating recognizer is a cheap, local streaming recognizer.  Its only job
is to tell whether an utterance contains any words at all, so that pure
noise never reaches the remote transcription service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

ResultCallback = Callable[[str, bool], None]
"""Callback for recognition results: (text, is_final)."""


class GatingRecognizer(ABC):
    """Abstract base class for streaming gating recognizers.

    Lifecycle: ``start(on_result)`` opens a recognition task, ``accept()``
    appends audio at :attr:`sample_rate`, ``stop()`` ends the task.  Results
    must be delivered on the event-loop thread.  A recognizer may deliver
    results after ``stop()``; callers are expected to discard them.
    """

    @property
    def name(self) -> str:
        """Provider name (e.g. 'sherpa-onnx')."""
        return self.__class__.__name__

    @property
    def sample_rate(self) -> int:
        """Input sample rate expected by :meth:`accept`."""
        return 16000

    @property
    def is_available(self) -> bool:
        """Whether the recognizer can be used right now."""
        return True

    @abstractmethod
    def start(self, on_result: ResultCallback) -> None:
        """Begin a new recognition task reporting through *on_result*."""
        ...

    @abstractmethod
    def accept(self, samples: Sequence[float]) -> None:
        """Append float samples (at :attr:`sample_rate`) to the current task."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """End the current recognition task, if any."""
        ...

    async def warmup(self) -> None:  # noqa: B027
        """Pre-load models so the first session starts fast."""

    def close(self) -> None:  # noqa: B027
        """Release resources."""
