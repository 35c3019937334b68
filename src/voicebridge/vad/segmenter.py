"""Energy-window VAD segmenter with hysteresis, hold-over and a silence timer.

The segmenter consumes one smoothed RMS level per packet.  Transitions are
driven by the average over a rolling window of levels, so a single loud
click does not open an utterance.
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from collections.abc import Callable

from voicebridge.core.timers import Cancelable, Scheduler, loop_scheduler
from voicebridge.vad.base import VADConfig, VADEvent, VADEventType, VADPhase

logger = logging.getLogger(__name__)

_DEBUG_SUMMARY_INTERVAL = 100  # observations (~1s at 10ms packets)

# Averaging a window of identical levels may land one ulp below the level.
_LEVEL_EPSILON = 1e-12

SpeechEndCallback = Callable[[VADEvent], None]


class VADSegmenter:
    """Three-phase state machine: waiting -> speaking -> silence -> waiting.

    * ``waiting -> speaking`` when the window average reaches ``on_threshold``.
    * ``speaking -> silence`` once ``holdover_seconds`` have passed since the
      last qualifying energy *and* the average is below ``off_threshold``.
      A one-shot timer of ``silence_seconds`` is armed.
    * ``silence -> speaking`` when the average reaches ``on_threshold``
      again; the pending timer is canceled first.
    * When the timer fires the phase returns to ``waiting`` and
      *on_speech_end* is called with a ``SPEECH_END`` event.

    Parameters:
        config: Thresholds and timings.
        clock: Monotonic clock in seconds.
        scheduler: One-shot timer factory (defaults to the running loop).
        on_speech_end: Called when the silence timer fires.
    """

    def __init__(
        self,
        config: VADConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Scheduler = loop_scheduler,
        on_speech_end: SpeechEndCallback | None = None,
    ) -> None:
        self._config = config or VADConfig()
        self._clock = clock
        self._scheduler = scheduler
        self._on_speech_end = on_speech_end

        self._phase = VADPhase.WAITING
        self._window: deque[float] = deque(maxlen=self._config.window_size)
        self._last_voice_time: float | None = None
        self._finalize_handle: Cancelable | None = None

        self._debug_count = 0
        self._debug_max = 0.0

    # -- State queries --

    @property
    def config(self) -> VADConfig:
        return self._config

    @property
    def phase(self) -> VADPhase:
        return self._phase

    @property
    def window(self) -> tuple[float, ...]:
        """Levels currently in the rolling window, oldest first."""
        return tuple(self._window)

    @property
    def window_average(self) -> float:
        if not self._window:
            return 0.0
        return math.fsum(self._window) / len(self._window)

    @property
    def last_voice_time(self) -> float | None:
        """Clock reading of the last qualifying window average, or None."""
        return self._last_voice_time

    @property
    def finalize_pending(self) -> bool:
        """True while the silence timer is armed."""
        return self._finalize_handle is not None

    @property
    def in_utterance(self) -> bool:
        return self._phase is not VADPhase.WAITING

    def set_speech_end_callback(self, callback: SpeechEndCallback | None) -> None:
        self._on_speech_end = callback

    # -- Processing --

    def observe(self, level: float) -> VADEvent | None:
        """Feed one smoothed level; return the transition it caused, if any."""
        cfg = self._config
        now = self._clock()

        self._window.append(level)
        avg = self.window_average
        voiced = avg >= cfg.on_threshold - _LEVEL_EPSILON

        # Hold-over is measured from the last qualifying energy, in any phase.
        if voiced:
            self._last_voice_time = now

        if logger.isEnabledFor(logging.DEBUG):
            self._debug_summary(avg)

        if self._phase is VADPhase.WAITING:
            if voiced:
                self._phase = VADPhase.SPEAKING
                return VADEvent(type=VADEventType.SPEECH_START, level=avg, timestamp=now)

        elif self._phase is VADPhase.SPEAKING:
            since_voice = (
                math.inf if self._last_voice_time is None else now - self._last_voice_time
            )
            if since_voice >= cfg.holdover_seconds and avg < cfg.off_threshold:
                self._phase = VADPhase.SILENCE
                self._cancel_finalize()
                self._finalize_handle = self._scheduler(
                    cfg.silence_seconds, self._on_silence_elapsed
                )
                return VADEvent(type=VADEventType.SILENCE_START, level=avg, timestamp=now)

        elif voiced:
            self._cancel_finalize()
            self._phase = VADPhase.SPEAKING
            return VADEvent(type=VADEventType.SPEECH_RESUME, level=avg, timestamp=now)

        return None

    def _on_silence_elapsed(self) -> None:
        self._finalize_handle = None
        if self._phase is not VADPhase.SILENCE:
            return
        self._phase = VADPhase.WAITING
        event = VADEvent(
            type=VADEventType.SPEECH_END,
            level=self.window_average,
            timestamp=self._clock(),
        )
        logger.debug("VAD: silence confirmed, utterance complete")
        if self._on_speech_end is not None:
            self._on_speech_end(event)

    def _cancel_finalize(self) -> None:
        if self._finalize_handle is not None:
            self._finalize_handle.cancel()
            self._finalize_handle = None

    def _debug_summary(self, avg: float) -> None:
        self._debug_count += 1
        self._debug_max = max(self._debug_max, avg)
        if self._debug_count >= _DEBUG_SUMMARY_INTERVAL:
            logger.debug(
                "VAD: phase=%s window_avg=%.4f window_max=%.4f",
                self._phase,
                avg,
                self._debug_max,
            )
            self._debug_count = 0
            self._debug_max = 0.0

    def reset(self) -> None:
        """Return to ``waiting`` and forget all energy history.

        Cancels a pending silence timer.  Calling it repeatedly is harmless.
        """
        self._cancel_finalize()
        self._phase = VADPhase.WAITING
        self._window.clear()
        self._last_voice_time = None
        self._debug_count = 0
        self._debug_max = 0.0
