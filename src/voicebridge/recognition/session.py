"""Recognition session manager with stale-result suppression."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from voicebridge.audio.resampler.base import ResamplerProvider
from voicebridge.audio.resampler.linear import LinearResamplerProvider
from voicebridge.recognition.base import GatingRecognizer

logger = logging.getLogger(__name__)

PartialTextCallback = Callable[[str], None]


class RecognitionSessionManager:
    """Feeds utterance audio to a gating recognizer, one session at a time.

    Every ``start()`` and ``stop()`` bumps a generation counter.  Result
    callbacks capture the id current when their session started; a result
    whose id no longer matches is dropped.  A slow result from a session
    that was already replaced can therefore never overwrite fresher text,
    and nothing has to be canceled.
    """

    def __init__(
        self,
        recognizer: GatingRecognizer,
        *,
        resampler: ResamplerProvider | None = None,
        on_partial: PartialTextCallback | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._resampler = resampler or LinearResamplerProvider()
        self._on_partial = on_partial
        self._session_id = 0
        self._active = False
        self._text = ""
        self._stale_results = 0

    @property
    def recognizer(self) -> GatingRecognizer:
        return self._recognizer

    @property
    def session_id(self) -> int:
        return self._session_id

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def text(self) -> str:
        """Latest text reported by the current session."""
        return self._text

    @property
    def stale_results(self) -> int:
        """Number of results discarded because their session had ended."""
        return self._stale_results

    def set_partial_callback(self, callback: PartialTextCallback | None) -> None:
        self._on_partial = callback

    def start(self) -> int:
        """Start a new session, ending any previous one.  Returns its id."""
        if self._active:
            self._recognizer.stop()
        self._session_id += 1
        session_id = self._session_id
        self._text = ""
        self._active = True

        def _on_result(text: str, is_final: bool) -> None:
            self._apply_result(session_id, text, is_final)

        self._recognizer.start(_on_result)
        logger.debug("Recognition session %d started", session_id)
        return session_id

    def feed(self, samples: Sequence[float], source_rate: int) -> None:
        """Resample *samples* to the recognizer rate and append them."""
        if not self._active or not samples:
            return
        resampled = self._resampler.resample(samples, source_rate, self._recognizer.sample_rate)
        self._recognizer.accept(resampled)

    def stop(self) -> None:
        """End the current session; its late results will be ignored."""
        self._session_id += 1
        self._text = ""
        if self._active:
            self._active = False
            self._recognizer.stop()
            logger.debug("Recognition session ended")

    def _apply_result(self, session_id: int, text: str, is_final: bool) -> None:
        if session_id != self._session_id:
            self._stale_results += 1
            logger.debug(
                "Dropping stale recognition result from session %d (current %d)",
                session_id,
                self._session_id,
            )
            return
        self._text = text
        if self._on_partial is not None:
            self._on_partial(text)
