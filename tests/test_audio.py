"""Tests for PCM decoding, conditioning, pre-roll and WAV encoding."""

from __future__ import annotations

import math
import struct

import pytest

from tests.conftest import pcm_bytes
from voicebridge.audio.conditioner import (
    ConditionerConfig,
    HighPassFilter,
    SignalConditioner,
    rms,
)
from voicebridge.audio.pcm import PCMDecoder, float_to_pcm16le, pcm16le_to_float
from voicebridge.audio.preroll import PreRollBuffer
from voicebridge.audio.wav import WAV_HEADER_BYTES, encode_wav

INT16_VALUES = [0, 1, -1, 32767, -32768, 1234, -4321, 16384, -16384, 7]


# ---------------------------------------------------------------------------
# PCM
# ---------------------------------------------------------------------------


class TestPCMConversion:
    def test_normalizes_by_32768(self) -> None:
        assert pcm16le_to_float(pcm_bytes([16384, -32768, 0])) == [0.5, -1.0, 0.0]

    def test_trailing_odd_byte_ignored(self) -> None:
        assert pcm16le_to_float(pcm_bytes([100]) + b"\x01") == [100 / 32768]

    def test_float_to_pcm_clamps_and_truncates(self) -> None:
        data = float_to_pcm16le([2.0, -2.0, 0.5, -0.5])
        assert struct.unpack("<4h", data) == (32767, -32767, 16383, -16383)

    def test_float_to_pcm_empty(self) -> None:
        assert float_to_pcm16le([]) == b""


class TestPCMDecoder:
    @pytest.mark.parametrize("chunk_size", [1, 3, 5, 7, 20])
    def test_arbitrary_splits_reassemble(self, chunk_size: int) -> None:
        data = pcm_bytes(INT16_VALUES)
        decoder = PCMDecoder()
        out: list[float] = []
        for i in range(0, len(data), chunk_size):
            out.extend(decoder.decode(data[i : i + chunk_size]))
        assert out == pytest.approx([v / 32768 for v in INT16_VALUES])
        assert decoder.pending_byte is None

    def test_odd_byte_is_carried(self) -> None:
        decoder = PCMDecoder()
        data = pcm_bytes([-2])
        assert decoder.decode(data[:1]) == []
        assert decoder.pending_byte == data[0]
        assert decoder.decode(data[1:]) == [-2 / 32768]

    def test_reset_drops_pending(self) -> None:
        decoder = PCMDecoder()
        decoder.decode(b"\x01")
        decoder.reset()
        assert decoder.pending_byte is None
        assert decoder.decode(pcm_bytes([5])) == [5 / 32768]


# ---------------------------------------------------------------------------
# Conditioning
# ---------------------------------------------------------------------------


class TestHighPassFilter:
    def test_first_order_recurrence(self) -> None:
        hpf = HighPassFilter(alpha=0.94)
        assert hpf.process([1.0, 1.0, 1.0]) == pytest.approx([0.94, 0.8836, 0.830584])

    def test_memory_persists_across_chunks(self) -> None:
        whole = HighPassFilter().process([0.1, 0.4, -0.3, 0.2])
        split = HighPassFilter()
        parts = split.process([0.1, 0.4]) + split.process([-0.3, 0.2])
        assert parts == pytest.approx(whole)

    def test_dc_decays(self) -> None:
        out = HighPassFilter().process([0.5] * 200)
        assert abs(out[-1]) < 1e-5


class TestSignalConditioner:
    def test_level_is_exponential_average(self) -> None:
        cond = SignalConditioner()
        filtered = cond.process([0.5, -0.5])
        instant = rms(filtered)
        assert cond.level == pytest.approx(0.1 * instant)
        filtered = cond.process([0.5, -0.5])
        assert cond.level == pytest.approx(0.1 * rms(filtered) + 0.9 * 0.1 * instant)

    def test_empty_chunk_keeps_level(self) -> None:
        cond = SignalConditioner()
        cond.process([0.3, -0.3])
        level = cond.level
        assert cond.process([]) == []
        assert cond.level == level

    def test_filter_memory_and_reset(self) -> None:
        cond = SignalConditioner(ConditionerConfig(high_pass_alpha=0.5))
        out = cond.process([0.2, 0.6])
        assert cond.filter_memory == (0.6, out[-1])
        cond.reset()
        assert cond.filter_memory == (0.0, 0.0)
        assert cond.level == 0.0

    def test_rms(self) -> None:
        assert rms([3.0, -4.0]) == pytest.approx(math.sqrt(12.5))
        assert rms([]) == 0.0


# ---------------------------------------------------------------------------
# Pre-roll
# ---------------------------------------------------------------------------


class TestPreRollBuffer:
    def test_for_duration(self) -> None:
        assert PreRollBuffer.for_duration(0.5, 8000).capacity == 4000
        assert PreRollBuffer.for_duration(0.5, 16000).capacity == 8000

    def test_keeps_newest_samples(self) -> None:
        buf = PreRollBuffer(5)
        buf.append([1.0, 2.0, 3.0])
        buf.append([4.0, 5.0, 6.0, 7.0])
        assert len(buf) == 5
        assert buf.snapshot() == [3.0, 4.0, 5.0, 6.0, 7.0]

    def test_never_exceeds_capacity(self) -> None:
        buf = PreRollBuffer(7)
        for i in range(50):
            buf.append([float(i)] * 3)
            assert len(buf) <= 7

    def test_oversized_chunk(self) -> None:
        buf = PreRollBuffer(3)
        buf.append([1.0])
        buf.append([2.0, 3.0, 4.0, 5.0])
        assert buf.snapshot() == [3.0, 4.0, 5.0]

    def test_drain_clears(self) -> None:
        buf = PreRollBuffer(4)
        buf.append([1.0, 2.0])
        assert buf.drain() == [1.0, 2.0]
        assert len(buf) == 0
        assert buf.snapshot() == []

    def test_zero_capacity(self) -> None:
        buf = PreRollBuffer(0)
        buf.append([1.0])
        assert buf.snapshot() == []

    def test_negative_capacity(self) -> None:
        with pytest.raises(ValueError):
            PreRollBuffer(-1)


# ---------------------------------------------------------------------------
# WAV
# ---------------------------------------------------------------------------


class TestEncodeWav:
    def test_one_second_at_8k(self) -> None:
        wav = encode_wav([0.5] * 8000, 8000)
        assert len(wav) == WAV_HEADER_BYTES + 16000
        assert wav[:4] == b"RIFF"
        assert wav[8:12] == b"WAVE"
        (chunk_size,) = struct.unpack_from("<I", wav, 4)
        assert chunk_size == 16036
        assert wav[36:40] == b"data"
        (data_size,) = struct.unpack_from("<I", wav, 40)
        assert data_size == 16000

    def test_fmt_chunk(self) -> None:
        wav = encode_wav([0.0] * 10, 16000)
        assert wav[12:16] == b"fmt "
        sub1, fmt, channels, rate, byte_rate, align, bits = struct.unpack_from(
            "<IHHIIHH", wav, 16
        )
        assert (sub1, fmt, channels, rate, byte_rate, align, bits) == (
            16,
            1,
            1,
            16000,
            32000,
            2,
            16,
        )

    def test_samples_scaled_and_truncated(self) -> None:
        wav = encode_wav([0.5, -1.5], 8000)
        assert struct.unpack_from("<2h", wav, WAV_HEADER_BYTES) == (16383, -32767)

    def test_invalid_rate(self) -> None:
        with pytest.raises(ValueError):
            encode_wav([0.0], 0)
