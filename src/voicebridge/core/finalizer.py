"""Utterance finalizer: gates noise and runs transcription off the audio path."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from voicebridge.stt.base import NoSpeechError, STTProvider, TranscriptionError

logger = logging.getLogger(__name__)


@dataclass
class Utterance:
    """Audio of one finalized utterance, handed over by value."""

    samples: list[float]
    sample_rate: int
    gating_text: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


TranscribedCallback = Callable[[Utterance, str], None]
DiscardedCallback = Callable[[Utterance, str], None]
FailedCallback = Callable[[Utterance, Exception], None]


class UtteranceFinalizer:
    """Decides what happens to each finalized utterance.

    Utterances whose gating recognizer heard no words, or that carry no
    samples, are discarded as noise without a network call.  Everything
    else is transcribed in a background task.  Results are reported with
    the :class:`Utterance` they belong to, so callers key them by
    ``utterance.id`` rather than by whatever is "current" when the call
    returns.
    """

    def __init__(
        self,
        stt: STTProvider,
        *,
        on_transcribed: TranscribedCallback | None = None,
        on_discarded: DiscardedCallback | None = None,
        on_failed: FailedCallback | None = None,
    ) -> None:
        self._stt = stt
        self._on_transcribed = on_transcribed
        self._on_discarded = on_discarded
        self._on_failed = on_failed
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def stt(self) -> STTProvider:
        return self._stt

    @property
    def pending(self) -> int:
        """Number of transcriptions in flight."""
        return sum(1 for t in self._tasks if not t.done())

    def submit(self, utterance: Utterance) -> asyncio.Task[None] | None:
        """Discard *utterance* as noise or start transcribing it.

        Returns the transcription task, or None if it was discarded.
        """
        if not utterance.gating_text.strip() or not utterance.samples:
            logger.info(
                "Gating recognizer heard no words, discarding %d samples as noise",
                len(utterance.samples),
            )
            self._discard(utterance, "noise")
            return None

        logger.info(
            "Transcribing utterance %s (%.2fs)", utterance.id, utterance.duration_seconds
        )
        task = asyncio.get_running_loop().create_task(
            self._transcribe(utterance), name=f"transcribe:{utterance.id}"
        )
        task.add_done_callback(self._task_done)
        self._tasks.add(task)
        return task

    async def _transcribe(self, utterance: Utterance) -> None:
        try:
            result = await self._stt.transcribe(utterance.samples, utterance.sample_rate)
        except NoSpeechError as exc:
            logger.info("No speech in utterance %s: %s", utterance.id, exc)
            self._discard(utterance, str(exc))
            return
        except TranscriptionError as exc:
            logger.warning("Transcription failed for utterance %s: %s", utterance.id, exc)
            if self._on_failed is not None:
                self._on_failed(utterance, exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error transcribing utterance %s", utterance.id)
            if self._on_failed is not None:
                self._on_failed(utterance, exc)
            return

        text = result.text.strip()
        if not text:
            self._discard(utterance, "empty transcription")
            return
        if self._on_transcribed is not None:
            self._on_transcribed(utterance, text)

    def _discard(self, utterance: Utterance, reason: str) -> None:
        if self._on_discarded is not None:
            self._on_discarded(utterance, reason)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Unhandled exception in transcription task %s: %s",
                task.get_name(),
                exc,
                exc_info=exc,
            )

    async def drain(self) -> None:
        """Wait until every in-flight transcription has finished."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight transcriptions."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
