"""Tests for VoiceBridge: utterances to transcript entries and agent replies."""

from __future__ import annotations

import asyncio

import pytest

from tests.conftest import ManualClock, ManualScheduler, notification, pcm_bytes, square_wave
from voicebridge.agent.base import AgentHTTPError
from voicebridge.agent.http import HTTPAgentClient
from voicebridge.agent.mock import MockAgentClient
from voicebridge.config import BridgeConfig
from voicebridge.core.bridge import NOTIFICATION_LABEL, VoiceBridge
from voicebridge.models.agent_event import AgentEvent
from voicebridge.models.enums import EntrySource, EntryStatus
from voicebridge.models.transcript import TranscriptEntry
from voicebridge.recognition.mock import MockGatingRecognizer
from voicebridge.stt.base import HallucinationDetectedError, TranscriptionError
from voicebridge.stt.mock import MockSTTProvider
from voicebridge.stt.whisper import WhisperSTTProvider
from voicebridge.vad.base import VADPhase

SILENT = pcm_bytes([0] * 80)
LOUD = pcm_bytes(square_wave(80))


class GatedAgent(MockAgentClient):
    """Agent whose replies wait for :attr:`release`."""

    def __init__(self, replies: list[str | Exception]) -> None:
        super().__init__(replies)
        self.release = asyncio.Event()

    async def send_message(self, message: str) -> str:
        await self.release.wait()
        return await super().send_message(message)


def _bridge(
    clock: ManualClock,
    scheduler: ManualScheduler,
    *,
    stt: MockSTTProvider | None = None,
    agent: MockAgentClient | None = None,
    recognizer: MockGatingRecognizer | None = None,
) -> VoiceBridge:
    bridge = VoiceBridge(
        recognizer or MockGatingRecognizer("こんにちは"),
        stt or MockSTTProvider(["今日は晴れです"]),
        agent or MockAgentClient(["了解しました"]),
        clock=clock,
        scheduler=scheduler,
        poll_events=False,
    )
    bridge.apply_codec(b"\x01")
    return bridge


def _speak(bridge: VoiceBridge, clock: ManualClock, scheduler: ManualScheduler) -> None:
    """Feed one complete utterance and let the silence timer fire."""
    packet_id = bridge.stream.packet_count

    def send(payload: bytes, until: VADPhase | None = None, count: int = 1) -> None:
        nonlocal packet_id
        for _ in range(400 if until else count):
            bridge.handle_notification(notification(packet_id % 65536, 0, payload))
            packet_id += 1
            clock.advance(0.01)
            if until is not None and bridge.stream.phase is until:
                return
        if until is not None:
            raise AssertionError(f"VAD never reached {until}")

    send(SILENT, count=60)
    send(LOUD, until=VADPhase.SPEAKING)
    send(LOUD, count=20)
    send(SILENT, until=VADPhase.SILENCE)
    scheduler.advance(2.0)


class TestVoiceBridge:
    async def test_utterance_to_reply(self, clock: ManualClock, scheduler: ManualScheduler) -> None:
        agent = MockAgentClient(["了解しました"])
        bridge = _bridge(clock, scheduler, agent=agent)
        entries: list[tuple[str, EntryStatus]] = []
        transcripts: list[str] = []
        bridge.on_entry(lambda e: entries.append((e.id, e.status)))
        bridge.on_transcript(transcripts.append)

        bridge.start()
        _speak(bridge, clock, scheduler)
        assert bridge.is_processing
        await bridge.drain()

        assert bridge.sentences == ["今日は晴れです"]
        assert bridge.transcript == "今日は晴れです"
        assert agent.messages == ["今日は晴れです"]
        [entry] = bridge.entries
        assert entry.user_message == "今日は晴れです"
        assert entry.reply == "了解しました"
        assert entry.status is EntryStatus.DONE
        assert entry.source is EntrySource.SPEECH
        assert entries == [(entry.id, EntryStatus.LOADING), (entry.id, EntryStatus.DONE)]
        assert not bridge.is_processing
        assert "こんにちは" in transcripts  # live gating text while speaking

    async def test_noise_makes_no_entry(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        stt = MockSTTProvider(["never"])
        bridge = _bridge(clock, scheduler, stt=stt, recognizer=MockGatingRecognizer(None))
        bridge.start()
        _speak(bridge, clock, scheduler)
        await bridge.drain()

        assert stt.calls == []
        assert bridge.entries == []
        assert bridge.sentences == []

    async def test_hallucination_makes_no_entry(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        stt = MockSTTProvider([HallucinationDetectedError("ご視聴ありがとうございました")])
        bridge = _bridge(clock, scheduler, stt=stt)
        bridge.start()
        _speak(bridge, clock, scheduler)
        await bridge.drain()

        assert len(stt.calls) == 1
        assert bridge.entries == []
        assert bridge.error is None

    async def test_transcription_failure_reported(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        stt = MockSTTProvider([TranscriptionError("HTTP 500")])
        bridge = _bridge(clock, scheduler, stt=stt)
        errors: list[str] = []
        bridge.on_error(errors.append)
        bridge.start()
        _speak(bridge, clock, scheduler)
        await bridge.drain()

        assert errors == ["transcription failed: HTTP 500"]
        assert bridge.entries == []

    async def test_agent_failure_marks_entry(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        agent = MockAgentClient([AgentHTTPError("agent request failed with HTTP 500")])
        bridge = _bridge(clock, scheduler, agent=agent)
        entry = bridge.send_manual_message("hello")
        assert entry is not None
        await bridge.drain()

        assert entry.status is EntryStatus.ERROR
        assert entry.is_error
        assert entry.reply == "error: agent request failed with HTTP 500"
        assert entry.error == entry.reply

    async def test_two_utterances_stream_on_while_agent_is_slow(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        agent = GatedAgent(["first reply", "second reply"])
        stt = MockSTTProvider(["一つ目", "二つ目"])
        bridge = _bridge(clock, scheduler, stt=stt, agent=agent)
        bridge.start()

        _speak(bridge, clock, scheduler)
        await bridge.finalizer.drain()
        _speak(bridge, clock, scheduler)
        await bridge.finalizer.drain()

        assert bridge.sentences == ["一つ目", "二つ目"]
        assert [e.status for e in bridge.entries] == [EntryStatus.LOADING] * 2
        assert bridge.is_processing

        agent.release.set()
        await bridge.drain()
        first, second = bridge.entries
        assert (first.user_message, first.reply) == ("一つ目", "first reply")
        assert (second.user_message, second.reply) == ("二つ目", "second reply")

    async def test_manual_message(self, clock: ManualClock, scheduler: ManualScheduler) -> None:
        agent = MockAgentClient(["pong"])
        bridge = _bridge(clock, scheduler, agent=agent)

        assert bridge.send_manual_message("   ") is None
        entry = bridge.send_manual_message("  ping ")
        assert entry is not None
        assert entry.source is EntrySource.MANUAL
        assert entry.is_loading
        await bridge.drain()

        assert agent.messages == ["ping"]
        assert bridge.get_entry(entry.id) is entry
        assert entry.reply == "pong"
        assert bridge.sentences == ["ping"]

    async def test_start_clears_sentences_but_keeps_entries(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        bridge = _bridge(clock, scheduler)
        bridge.send_manual_message("first")
        await bridge.drain()
        bridge.start()
        assert bridge.sentences == []
        assert len(bridge.entries) == 1

    async def test_agent_event_becomes_entry(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        event = AgentEvent(type="subagent", text="調査が終わりました", timestamp=2**41)
        agent = MockAgentClient(events=[event])
        bridge = VoiceBridge(
            MockGatingRecognizer(),
            MockSTTProvider(),
            agent,
            clock=clock,
            scheduler=scheduler,
            poll_interval=60,
        )
        added: list[TranscriptEntry] = []
        bridge.on_entry(added.append)
        assert bridge.poller is not None

        await bridge.poller.poll_once()

        [entry] = bridge.entries
        assert entry.source is EntrySource.NOTIFICATION
        assert entry.user_message == NOTIFICATION_LABEL
        assert entry.reply == "調査が終わりました"
        assert entry.status is EntryStatus.DONE
        assert added == [entry]

    async def test_start_starts_poller(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        bridge = VoiceBridge(
            MockGatingRecognizer(),
            MockSTTProvider(),
            MockAgentClient(),
            clock=clock,
            scheduler=scheduler,
            poll_interval=60,
        )
        bridge.apply_codec(b"\x01")
        bridge.start()
        assert bridge.poller is not None and bridge.poller.is_running
        bridge.stop()
        assert not bridge.stream.is_streaming
        assert bridge.poller.is_running
        await bridge.close()
        assert not bridge.poller.is_running

    async def test_close_releases_everything(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        stt = MockSTTProvider()
        agent = MockAgentClient()
        recognizer = MockGatingRecognizer()
        bridge = _bridge(clock, scheduler, stt=stt, agent=agent, recognizer=recognizer)
        await bridge.close()
        assert stt.closed and agent.closed and recognizer.closed

    async def test_watchdog_error_surfaces(
        self, clock: ManualClock, scheduler: ManualScheduler
    ) -> None:
        bridge = _bridge(clock, scheduler)
        errors: list[str] = []
        bridge.on_error(errors.append)
        bridge.start()
        scheduler.advance(6.0)
        assert bridge.error == errors[0]
        assert not bridge.stream.is_streaming


class TestFromConfig:
    def test_builds_http_providers(self) -> None:
        config = BridgeConfig.from_env(
            {
                "OPENAI_API_KEY": "sk-test",
                "VOICEBRIDGE_AGENT_URL": "https://agent.example.com",
                "VOICEBRIDGE_AGENT_TOKEN": "tok",
                "VOICEBRIDGE_POLL_EVENTS": "0",
            }
        )
        bridge = VoiceBridge.from_config(config, MockGatingRecognizer())
        assert isinstance(bridge.finalizer.stt, WhisperSTTProvider)
        assert isinstance(bridge.agent, HTTPAgentClient)
        assert bridge.poller is None


@pytest.mark.parametrize("text", ["", "  "])
async def test_blank_manual_message_ignored(
    text: str, clock: ManualClock, scheduler: ManualScheduler
) -> None:
    bridge = _bridge(clock, scheduler)
    assert bridge.send_manual_message(text) is None
    assert bridge.entries == []
