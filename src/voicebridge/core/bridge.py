"""VoiceBridge: audio stream -> transcription -> agent, with a transcript."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from voicebridge.agent.base import AgentClient
from voicebridge.agent.http import HTTPAgentClient
from voicebridge.agent.poller import EventPoller
from voicebridge.audio.resampler.base import ResamplerProvider
from voicebridge.core.finalizer import Utterance, UtteranceFinalizer
from voicebridge.core.stream import AudioStream, StreamConfig
from voicebridge.core.timers import Scheduler, loop_scheduler
from voicebridge.models.agent_event import AgentEvent
from voicebridge.models.enums import EntrySource, EntryStatus
from voicebridge.models.transcript import TranscriptEntry
from voicebridge.recognition.base import GatingRecognizer
from voicebridge.stt.base import STTProvider
from voicebridge.stt.whisper import WhisperSTTProvider
from voicebridge.telemetry.base import TelemetryProvider
from voicebridge.telemetry.noop import NoopTelemetryProvider

if TYPE_CHECKING:
    from voicebridge.config import BridgeConfig

logger = logging.getLogger(__name__)

EntryCallback = Callable[[TranscriptEntry], None]
TextCallback = Callable[[str], None]

NOTIFICATION_LABEL = "Agent notification"


class VoiceBridge:
    """Wires an :class:`AudioStream` to transcription and an agent.

    Each finalized sentence gets a :class:`TranscriptEntry` in ``loading``
    state; the agent reply is later applied to that entry by id.  Several
    utterances and replies may be in flight at once without affecting the
    audio path.

    Example::

        bridge = VoiceBridge(recognizer, WhisperSTTProvider(cfg), agent)
        bridge.apply_codec(codec_value)
        bridge.start()
        # for each BLE notification:
        bridge.handle_notification(data)
    """

    def __init__(
        self,
        recognizer: GatingRecognizer,
        stt: STTProvider,
        agent: AgentClient,
        *,
        stream_config: StreamConfig | None = None,
        resampler: ResamplerProvider | None = None,
        telemetry: TelemetryProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Scheduler = loop_scheduler,
        poll_events: bool = True,
        poll_interval: float = 3.0,
    ) -> None:
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._agent = agent
        self._stream = AudioStream(
            recognizer,
            config=stream_config,
            resampler=resampler,
            telemetry=self._telemetry,
            clock=clock,
            scheduler=scheduler,
            on_utterance=self._on_utterance,
            on_partial=self._on_partial,
            on_error=self._report_error,
        )
        self._finalizer = UtteranceFinalizer(
            stt,
            on_transcribed=self._on_transcribed,
            on_discarded=self._on_discarded,
            on_failed=self._on_transcription_failed,
        )
        self._poller = (
            EventPoller(agent, self._on_agent_event, interval=poll_interval)
            if poll_events
            else None
        )

        self._sentences: list[str] = []
        self._entries: list[TranscriptEntry] = []
        self._agent_tasks: set[asyncio.Task[None]] = set()
        self._error: str | None = None

        self._on_entry: EntryCallback | None = None
        self._on_transcript: TextCallback | None = None
        self._on_error: TextCallback | None = None

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        recognizer: GatingRecognizer,
        *,
        telemetry: TelemetryProvider | None = None,
        **kwargs: Any,
    ) -> VoiceBridge:
        """Build a bridge with Whisper transcription and the HTTP agent."""
        stt = WhisperSTTProvider(config.whisper, telemetry=telemetry)
        agent = HTTPAgentClient(config.agent, retry_policy=config.retry, telemetry=telemetry)
        return cls(
            recognizer,
            stt,
            agent,
            stream_config=config.stream,
            telemetry=telemetry,
            poll_events=config.poll_events,
            poll_interval=config.agent.poll_interval_seconds,
            **kwargs,
        )

    # -- Callbacks --

    def on_entry(self, callback: EntryCallback | None) -> None:
        """Called whenever an entry is added or its reply/status changes."""
        self._on_entry = callback

    def on_transcript(self, callback: TextCallback | None) -> None:
        """Called with the full transcript text whenever it changes."""
        self._on_transcript = callback

    def on_error(self, callback: TextCallback | None) -> None:
        """Called with a user-visible error message."""
        self._on_error = callback

    # -- State --

    @property
    def stream(self) -> AudioStream:
        return self._stream

    @property
    def agent(self) -> AgentClient:
        return self._agent

    @property
    def finalizer(self) -> UtteranceFinalizer:
        return self._finalizer

    @property
    def poller(self) -> EventPoller | None:
        return self._poller

    @property
    def sentences(self) -> list[str]:
        return list(self._sentences)

    @property
    def entries(self) -> list[TranscriptEntry]:
        return list(self._entries)

    @property
    def transcript(self) -> str:
        """Finalized sentences plus the live gating text, one per line."""
        lines = list(self._sentences)
        partial = self._stream.partial_text
        if partial:
            lines.append(partial)
        return "\n".join(lines)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_processing(self) -> bool:
        """True while a transcription is in flight or an entry is loading."""
        return self._finalizer.pending > 0 or any(e.is_loading for e in self._entries)

    def get_entry(self, entry_id: str) -> TranscriptEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    # -- Stream passthrough --

    def apply_codec(self, value: bytes) -> int:
        return self._stream.apply_codec(value)

    def handle_notification(self, data: bytes) -> None:
        self._stream.handle_notification(data)

    def start(self) -> None:
        """Start the audio stream, and event polling if enabled.

        Must be called from a running event loop.
        """
        self._error = None
        self._sentences.clear()
        self._stream.start()
        self._notify_transcript()
        if self._poller is not None and not self._poller.is_running:
            self._poller.start()

    def stop(self) -> None:
        """Stop the audio stream.  Event polling keeps running."""
        self._stream.stop()

    async def drain(self) -> None:
        """Wait for in-flight transcriptions and agent deliveries."""
        while True:
            await self._finalizer.drain()
            pending = [t for t in self._agent_tasks if not t.done()]
            if not pending:
                if self._finalizer.pending == 0:
                    return
                continue
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        self._stream.stop()
        if self._poller is not None:
            await self._poller.stop()
        await self._finalizer.close()
        tasks = list(self._agent_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._finalizer.stt.close()
        await self._agent.close()
        self._stream.recognition.recognizer.close()
        self._telemetry.close()

    # -- Messages --

    def send_manual_message(self, message: str) -> TranscriptEntry | None:
        """Send typed text to the agent as if it had been spoken."""
        text = message.strip()
        if not text:
            return None
        self._sentences.append(text)
        self._notify_transcript()
        return self._dispatch(text, EntrySource.MANUAL)

    def _dispatch(self, text: str, source: EntrySource) -> TranscriptEntry:
        entry = TranscriptEntry(user_message=text, source=source)
        self._entries.append(entry)
        self._notify_entry(entry)
        task = asyncio.get_running_loop().create_task(
            self._deliver(entry.id, text), name=f"agent:{entry.id}"
        )
        task.add_done_callback(self._agent_tasks.discard)
        self._agent_tasks.add(task)
        return entry

    async def _deliver(self, entry_id: str, text: str) -> None:
        try:
            reply = await self._agent.send_message(text)
        except Exception as exc:
            logger.warning("Agent delivery failed for entry %s: %s", entry_id, exc)
            self._complete(entry_id, reply=f"error: {exc}", status=EntryStatus.ERROR)
            return
        self._complete(entry_id, reply=reply, status=EntryStatus.DONE)

    def _complete(self, entry_id: str, *, reply: str, status: EntryStatus) -> None:
        entry = self.get_entry(entry_id)
        if entry is None:
            logger.debug("Reply for unknown entry %s dropped", entry_id)
            return
        entry.reply = reply
        entry.status = status
        if status == EntryStatus.ERROR:
            entry.error = reply
        self._notify_entry(entry)

    # -- Stream / finalizer callbacks --

    def _on_utterance(self, utterance: Utterance) -> None:
        self._notify_transcript()
        self._finalizer.submit(utterance)

    def _on_partial(self, text: str) -> None:
        self._notify_transcript()

    def _on_transcribed(self, utterance: Utterance, text: str) -> None:
        logger.info("Sentence finalized from utterance %s: %r", utterance.id, text)
        self._sentences.append(text)
        self._notify_transcript()
        self._dispatch(text, EntrySource.SPEECH)

    def _on_discarded(self, utterance: Utterance, reason: str) -> None:
        logger.debug("Utterance %s discarded: %s", utterance.id, reason)

    def _on_transcription_failed(self, utterance: Utterance, exc: Exception) -> None:
        self._report_error(f"transcription failed: {exc}")

    def _on_agent_event(self, event: AgentEvent) -> None:
        entry = TranscriptEntry(
            user_message=NOTIFICATION_LABEL,
            reply=event.text,
            status=EntryStatus.DONE,
            source=EntrySource.NOTIFICATION,
        )
        self._entries.append(entry)
        self._notify_entry(entry)

    # -- Notifications --

    def _notify_entry(self, entry: TranscriptEntry) -> None:
        if self._on_entry is not None:
            self._on_entry(entry)

    def _notify_transcript(self) -> None:
        if self._on_transcript is not None:
            self._on_transcript(self.transcript)

    def _report_error(self, message: str) -> None:
        self._error = message
        if self._on_error is not None:
            self._on_error(message)
