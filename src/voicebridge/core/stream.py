"""Serialized audio stream: notifications in, finalized utterances out.

All state here is mutated from one place, the asyncio event loop thread.
Notifications, silence timers, the packet watchdog and recognizer callbacks
all run there, so no locking is needed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from voicebridge.audio.conditioner import ConditionerConfig, SignalConditioner
from voicebridge.audio.pcm import PCMDecoder
from voicebridge.audio.preroll import PreRollBuffer
from voicebridge.audio.resampler.base import ResamplerProvider
from voicebridge.core.errors import (
    RecognizerUnavailableError,
    StreamNotReadyError,
    UnsupportedCodecError,
)
from voicebridge.core.finalizer import Utterance
from voicebridge.core.timers import Cancelable, Scheduler, loop_scheduler
from voicebridge.recognition.base import GatingRecognizer
from voicebridge.recognition.session import RecognitionSessionManager
from voicebridge.telemetry.base import Attr, SpanKind, TelemetryProvider
from voicebridge.telemetry.noop import NoopTelemetryProvider
from voicebridge.transport.codec import is_supported_codec, parse_codec_value, sample_rate_for
from voicebridge.transport.framer import TransportFramer
from voicebridge.vad.base import VADConfig, VADEvent, VADEventType, VADPhase
from voicebridge.vad.segmenter import VADSegmenter

logger = logging.getLogger(__name__)

UtteranceCallback = Callable[[Utterance], None]
ErrorCallback = Callable[[str], None]
PartialCallback = Callable[[str], None]


@dataclass
class StreamConfig:
    """Tunables for an :class:`AudioStream`."""

    vad: VADConfig = field(default_factory=VADConfig)
    conditioner: ConditionerConfig = field(default_factory=ConditionerConfig)
    pre_roll_seconds: float = 0.5
    watchdog_seconds: float = 6.0

    def __post_init__(self) -> None:
        if self.pre_roll_seconds < 0:
            raise ValueError("pre_roll_seconds must be >= 0")
        if self.watchdog_seconds <= 0:
            raise ValueError("watchdog_seconds must be positive")


@dataclass(frozen=True)
class StreamStats:
    """Point-in-time view of stream health."""

    streaming: bool
    codec_id: int | None
    sample_rate: int | None
    packet_count: int
    dropped_frames: int
    level: float
    phase: VADPhase
    utterances: int
    transfer_status: str
    error: str | None


class AudioStream:
    """Turns BLE notifications into :class:`Utterance` objects.

    Per notification: framing and loss accounting, PCM decoding, high-pass
    filtering and level smoothing, then the VAD.  While ``waiting`` the
    filtered audio goes to the pre-roll ring; once speech starts the
    pre-roll is flushed into the speech buffer and the gating recognizer,
    and later audio is appended to both.  When the silence timer fires the
    buffer, the recognizer's text and the sample rate are captured into an
    :class:`Utterance`, all live state is reset, and *on_utterance* is
    called.  Anything slow happens downstream of that callback.
    """

    def __init__(
        self,
        recognizer: GatingRecognizer,
        *,
        config: StreamConfig | None = None,
        resampler: ResamplerProvider | None = None,
        telemetry: TelemetryProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Scheduler = loop_scheduler,
        on_utterance: UtteranceCallback | None = None,
        on_partial: PartialCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._config = config or StreamConfig()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._scheduler = scheduler
        self._on_utterance = on_utterance
        self._on_partial = on_partial
        self._on_error = on_error

        self._framer = TransportFramer()
        self._decoder = PCMDecoder()
        self._conditioner = SignalConditioner(self._config.conditioner)
        self._segmenter = VADSegmenter(
            self._config.vad,
            clock=clock,
            scheduler=scheduler,
            on_speech_end=self._on_speech_end,
        )
        self._recognition = RecognitionSessionManager(
            recognizer, resampler=resampler, on_partial=self._handle_partial
        )

        self._codec_id: int | None = None
        self._sample_rate: int | None = None
        self._pre_roll = PreRollBuffer(0)
        self._speech: list[float] | None = None

        self._streaming = False
        self._generation = 0
        self._watchdog: Cancelable | None = None
        self._transfer_status = "idle"
        self._error: str | None = None
        self._utterances = 0
        self._session_span: str | None = None
        self._utterance_span: str | None = None

    # -- Configuration --

    def set_utterance_callback(self, callback: UtteranceCallback | None) -> None:
        self._on_utterance = callback

    def set_partial_callback(self, callback: PartialCallback | None) -> None:
        self._on_partial = callback

    def set_error_callback(self, callback: ErrorCallback | None) -> None:
        self._on_error = callback

    def apply_codec(self, value: bytes) -> int:
        """Record the codec announced by the device's codec characteristic.

        Returns the codec id.  An unsupported id is recorded as the stream
        error and makes :meth:`start` fail.
        """
        codec_id = parse_codec_value(value)
        self._codec_id = codec_id
        if not is_supported_codec(codec_id):
            self._report_error(f"unsupported codec id {codec_id} (PCM16 only)")
            return codec_id

        rate = sample_rate_for(codec_id)
        if self._streaming and rate != self._sample_rate:
            logger.warning("Codec changed mid-stream: %s -> %d Hz", self._sample_rate, rate)
            # Buffered speech is at the old rate; close it out before switching.
            self._finalize_utterance()
        self._sample_rate = rate
        if self._pre_roll.capacity != self._pre_roll_capacity():
            self._pre_roll = PreRollBuffer(self._pre_roll_capacity())
        if not self._streaming:
            self._transfer_status = f"idle (PCM16 {rate // 1000}k)"
        logger.info("Codec %d announced (%d Hz)", codec_id, rate)
        return codec_id

    # -- State queries --

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    @property
    def codec_id(self) -> int | None:
        return self._codec_id

    @property
    def sample_rate(self) -> int | None:
        return self._sample_rate

    @property
    def packet_count(self) -> int:
        return self._framer.packet_count

    @property
    def dropped_frames(self) -> int:
        return self._framer.dropped_frames

    @property
    def level(self) -> float:
        """Smoothed RMS of the filtered signal."""
        return self._conditioner.level

    @property
    def phase(self) -> VADPhase:
        return self._segmenter.phase

    @property
    def transfer_status(self) -> str:
        return self._transfer_status

    @property
    def error(self) -> str | None:
        """Last user-visible error, cleared on start and when speech begins."""
        return self._error

    @property
    def partial_text(self) -> str:
        """Gating recognizer text for the utterance in progress."""
        return self._recognition.text

    @property
    def speech_samples(self) -> int:
        """Samples buffered for the current utterance (0 while waiting)."""
        return 0 if self._speech is None else len(self._speech)

    @property
    def pre_roll(self) -> PreRollBuffer:
        return self._pre_roll

    @property
    def segmenter(self) -> VADSegmenter:
        return self._segmenter

    @property
    def recognition(self) -> RecognitionSessionManager:
        return self._recognition

    def stats(self) -> StreamStats:
        return StreamStats(
            streaming=self._streaming,
            codec_id=self._codec_id,
            sample_rate=self._sample_rate,
            packet_count=self.packet_count,
            dropped_frames=self.dropped_frames,
            level=self.level,
            phase=self.phase,
            utterances=self._utterances,
            transfer_status=self._transfer_status,
            error=self._error,
        )

    # -- Lifecycle --

    def start(self) -> None:
        """Begin accepting notifications.

        Raises:
            StreamNotReadyError: No codec has been announced.
            UnsupportedCodecError: The announced codec is not PCM16.
            RecognizerUnavailableError: The gating recognizer cannot run.
        """
        if self._codec_id is None:
            raise StreamNotReadyError("codec not announced yet")
        if not is_supported_codec(self._codec_id):
            raise UnsupportedCodecError(self._codec_id)
        if not self._recognition.recognizer.is_available:
            raise RecognizerUnavailableError(
                f"gating recognizer {self._recognition.recognizer.name!r} is not available"
            )
        if self._streaming:
            self._teardown()

        self._framer.reset()
        self._decoder.reset()
        self._reset_vad_state()
        self._error = None
        self._transfer_status = "receiving - waiting for voice"
        self._streaming = True
        self._generation += 1

        generation = self._generation
        self._watchdog = self._scheduler(
            self._config.watchdog_seconds, lambda: self._check_watchdog(generation)
        )
        self._session_span = self._telemetry.start_span(
            SpanKind.STREAM_SESSION,
            "stream.session",
            attributes={Attr.CODEC_ID: self._codec_id, Attr.SAMPLE_RATE: self._sample_rate},
        )
        logger.info("Stream started (codec %d, %d Hz)", self._codec_id, self._sample_rate)

    def stop(self) -> None:
        """Stop streaming and drop any utterance in progress."""
        if not self._streaming:
            return
        self._teardown()
        self._transfer_status = "stopped"
        logger.info(
            "Stream stopped after %d packets (%d dropped, %d utterances)",
            self.packet_count,
            self.dropped_frames,
            self._utterances,
        )

    def _teardown(self) -> None:
        self._streaming = False
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None
        self._end_utterance_span(status="error", error_message="stream stopped")
        self._speech = None
        self._recognition.stop()
        self._decoder.reset()
        self._reset_vad_state()
        if self._session_span is not None:
            self._telemetry.end_span(
                self._session_span,
                attributes={
                    Attr.PACKET_COUNT: self.packet_count,
                    Attr.DROPPED_FRAMES: self.dropped_frames,
                },
            )
            self._session_span = None

    def _check_watchdog(self, generation: int) -> None:
        if not self._streaming or generation != self._generation:
            return
        self._watchdog = None
        if self._framer.packet_count == 0:
            logger.warning(
                "No audio packets within %.1fs of start, stopping stream",
                self._config.watchdog_seconds,
            )
            self.stop()
            self._transfer_status = "receive failed"
            self._report_error(
                "no audio packets received; reflash the firmware and reconnect"
            )

    # -- Audio path --

    def handle_notification(self, data: bytes) -> None:
        """Process one raw BLE notification from the audio characteristic."""
        if not self._streaming:
            return
        dropped_before = self._framer.dropped_frames
        payload = self._framer.ingest_notification(data)
        if payload is None:
            return
        lost = self._framer.dropped_frames - dropped_before
        if lost:
            self._telemetry.record_metric("voicebridge.transport.dropped_frames", float(lost))

        if self._codec_id is None or not is_supported_codec(self._codec_id):
            message = f"unsupported codec id {self._codec_id}"
            if self._error != message:
                self._report_error(message)
            return

        samples = self._decoder.decode(payload)
        if not samples:
            return
        filtered = self._conditioner.process(samples)

        if self._speech is None:
            self._pre_roll.append(filtered)
        else:
            self._speech.extend(filtered)
            self._recognition.feed(filtered, self._sample_rate)

        event = self._segmenter.observe(self._conditioner.level)
        if event is not None:
            self._handle_vad_event(event)

        if self._speech is not None:
            self._transfer_status = f"receiving: {self.packet_count} packets"

    def _handle_vad_event(self, event: VADEvent) -> None:
        if event.type is VADEventType.SPEECH_START:
            self._begin_utterance(event)
        elif event.type is VADEventType.SILENCE_START:
            logger.debug("VAD: silence started (avg %.4f)", event.level)
        elif event.type is VADEventType.SPEECH_RESUME:
            logger.debug("VAD: speech resumed (avg %.4f)", event.level)

    def _begin_utterance(self, event: VADEvent) -> None:
        if self._sample_rate is None:
            raise StreamNotReadyError("speech detected before a sample rate was announced")
        self._error = None
        self._speech = self._pre_roll.drain()
        self._recognition.start()
        self._recognition.feed(self._speech, self._sample_rate)
        self._transfer_status = "voice detected - buffering"
        self._utterance_span = self._telemetry.start_span(
            SpanKind.UTTERANCE, "vad.utterance", parent_id=self._session_span or None
        )
        logger.info(
            "Speech started (avg %.4f, %d pre-roll samples)", event.level, len(self._speech)
        )

    def _on_speech_end(self, event: VADEvent) -> None:
        if self._streaming:
            self._finalize_utterance()

    def _finalize_utterance(self) -> None:
        """Hand off the buffered speech as an utterance and return to waiting."""
        if self._speech is None or self._sample_rate is None:
            return
        utterance = Utterance(
            samples=self._speech,
            sample_rate=self._sample_rate,
            gating_text=self._recognition.text.strip(),
        )
        self._speech = None
        self._recognition.stop()
        self._reset_vad_state()
        self._utterances += 1
        self._transfer_status = "receiving - waiting for voice"
        self._end_utterance_span(
            attributes={
                Attr.UTTERANCE_ID: utterance.id,
                Attr.SAMPLE_COUNT: len(utterance.samples),
                Attr.AUDIO_SECONDS: utterance.duration_seconds,
            }
        )
        logger.info(
            "Utterance %s finalized (%.2fs, gating text %r)",
            utterance.id,
            utterance.duration_seconds,
            utterance.gating_text,
        )
        if self._on_utterance is not None:
            self._on_utterance(utterance)

    def _handle_partial(self, text: str) -> None:
        if self._on_partial is not None:
            self._on_partial(text)

    # -- Helpers --

    def _pre_roll_capacity(self) -> int:
        if self._sample_rate is None:
            return 0
        return int(self._config.pre_roll_seconds * self._sample_rate)

    def _reset_vad_state(self) -> None:
        """Clear window, level, filter memory and pre-roll between utterances."""
        self._segmenter.reset()
        self._conditioner.reset()
        if self._pre_roll.capacity != self._pre_roll_capacity():
            self._pre_roll = PreRollBuffer(self._pre_roll_capacity())
        else:
            self._pre_roll.clear()

    def _end_utterance_span(
        self,
        *,
        status: str = "ok",
        error_message: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        if self._utterance_span is not None:
            self._telemetry.end_span(
                self._utterance_span,
                status=status,
                error_message=error_message,
                attributes=attributes,
            )
            self._utterance_span = None

    def _report_error(self, message: str) -> None:
        self._error = message
        logger.warning("%s", message)
        if self._on_error is not None:
            self._on_error(message)
