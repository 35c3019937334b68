"""voicebridge -- replay a WAV file as BLE audio notifications.

Reads a mono 16-bit WAV recorded at 8 kHz or 16 kHz, slices it into
10 ms packets with the ``[packetId, chunkIndex, payload]`` header the
firmware uses, and feeds them to a VoiceBridge in real time.  Mock
transcription and agent providers are used unless ``--live`` is given, in
which case configuration comes from the environment (see README).

Run with:
    python examples/replay_wav.py recording.wav
    python examples/replay_wav.py recording.wav --live
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import struct
import wave

from voicebridge import (
    BridgeConfig,
    ConsoleTelemetryProvider,
    MockAgentClient,
    MockGatingRecognizer,
    MockSTTProvider,
    TranscriptEntry,
    VoiceBridge,
)

logging.basicConfig(level=logging.INFO)

CODEC_BY_RATE = {16000: 0, 8000: 1}


def _packets(pcm: bytes, sample_rate: int) -> list[bytes]:
    """Split PCM16LE into 10 ms notifications."""
    size = sample_rate // 100 * 2
    packets = []
    for packet_id, offset in enumerate(range(0, len(pcm), size)):
        header = struct.pack("<HB", packet_id % 65536, 0)
        packets.append(header + pcm[offset : offset + size])
    return packets


def _print_entry(entry: TranscriptEntry) -> None:
    print(f"[{entry.status}] {entry.user_message!r} -> {entry.reply!r}")


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("wav")
    parser.add_argument("--live", action="store_true", help="use Whisper and the HTTP agent")
    args = parser.parse_args()

    with wave.open(args.wav, "rb") as wav:
        if wav.getnchannels() != 1 or wav.getsampwidth() != 2:
            raise SystemExit("expected a mono 16-bit WAV")
        rate = wav.getframerate()
        if rate not in CODEC_BY_RATE:
            raise SystemExit(f"unsupported sample rate {rate}; use 8000 or 16000")
        pcm = wav.readframes(wav.getnframes())

    telemetry = ConsoleTelemetryProvider(level=logging.DEBUG)
    # Any non-empty gating text lets the utterance through to transcription.
    recognizer = MockGatingRecognizer("speech")
    if args.live:
        bridge = VoiceBridge.from_config(BridgeConfig.from_env(), recognizer, telemetry=telemetry)
    else:
        bridge = VoiceBridge(
            recognizer,
            MockSTTProvider(["Hello from the replay"]),
            MockAgentClient(["Got it"]),
            telemetry=telemetry,
            poll_events=False,
        )

    bridge.on_entry(_print_entry)
    bridge.on_error(lambda message: print(f"error: {message}"))
    bridge.apply_codec(bytes([CODEC_BY_RATE[rate]]))
    bridge.start()

    for packet in _packets(pcm, rate):
        bridge.handle_notification(packet)
        await asyncio.sleep(0.01)

    # Let the trailing silence timer fire before draining.
    await asyncio.sleep(bridge.stream.config.vad.silence_seconds + 0.5)
    await bridge.drain()
    print(bridge.stream.stats())
    await bridge.close()


if __name__ == "__main__":
    asyncio.run(main())
