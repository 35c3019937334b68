"""Tests for the wire packet, codec identity and transport framer."""

from __future__ import annotations

import pytest

from tests.conftest import notification
from voicebridge.transport.codec import (
    CodecId,
    is_supported_codec,
    parse_codec_value,
    sample_rate_for,
)
from voicebridge.transport.framer import TransportFramer
from voicebridge.transport.packet import HEADER_BYTES, TransportPacket


def _packet(packet_id: int, chunk_index: int, payload: bytes = b"\x00\x00") -> TransportPacket:
    return TransportPacket(packet_id=packet_id, chunk_index=chunk_index, payload=payload)


class TestTransportPacket:
    def test_parse_fields(self) -> None:
        pkt = TransportPacket.parse(bytes([0x34, 0x12, 7, 1, 2, 3]))
        assert pkt is not None
        assert pkt.packet_id == 0x1234
        assert pkt.chunk_index == 7
        assert pkt.payload == b"\x01\x02\x03"

    @pytest.mark.parametrize("data", [b"", b"\x01", b"\x01\x00", b"\x01\x00\x00"])
    def test_header_only_is_dropped(self, data: bytes) -> None:
        assert len(data) <= HEADER_BYTES
        assert TransportPacket.parse(data) is None

    def test_to_bytes_matches_wire_layout(self) -> None:
        pkt = _packet(0xABCD, 3, b"\xff")
        assert pkt.to_bytes() == b"\xcd\xab\x03\xff"

    def test_rejects_out_of_range_fields(self) -> None:
        with pytest.raises(ValueError):
            _packet(65536, 0)
        with pytest.raises(ValueError):
            _packet(0, 256)


class TestCodec:
    def test_sample_rates(self) -> None:
        assert sample_rate_for(CodecId.PCM16_16K) == 16_000
        assert sample_rate_for(CodecId.PCM16_8K) == 8_000

    def test_unsupported(self) -> None:
        assert not is_supported_codec(2)
        with pytest.raises(ValueError):
            sample_rate_for(20)

    def test_parse_codec_value_uses_first_byte(self) -> None:
        assert parse_codec_value(b"\x01\x00") == 1

    def test_parse_codec_value_empty(self) -> None:
        with pytest.raises(ValueError):
            parse_codec_value(b"")


class TestLossEstimate:
    def test_in_order_stream_has_no_loss(self) -> None:
        framer = TransportFramer()
        for packet_id in range(10):
            for chunk in range(3):
                framer.ingest(_packet(packet_id, chunk))
        assert framer.dropped_frames == 0
        assert framer.packet_count == 30

    def test_packet_id_gap(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(10, 0))
        framer.ingest(_packet(14, 0))
        assert framer.dropped_frames == 3

    def test_chunk_gap_within_packet_counts_once(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(5, 0))
        framer.ingest(_packet(5, 4))
        assert framer.dropped_frames == 1

    def test_new_packet_starting_mid_sequence(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(5, 0))
        framer.ingest(_packet(6, 2))
        assert framer.dropped_frames == 2

    def test_gap_and_mid_sequence_start_add_up(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(1, 0))
        framer.ingest(_packet(4, 1))
        assert framer.dropped_frames == 2 + 1

    def test_chunk_index_wraps(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(9, 255))
        framer.ingest(_packet(9, 0))
        assert framer.dropped_frames == 0

    def test_packet_id_wraps(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(65535, 0))
        framer.ingest(_packet(0, 0))
        assert framer.dropped_frames == 0

    def test_first_packet_sets_position_only(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(300, 5))
        assert framer.dropped_frames == 0
        assert framer.last_position == (300, 5)


class TestFramer:
    def test_ingest_returns_payload(self) -> None:
        framer = TransportFramer()
        assert framer.ingest_notification(notification(1, 0, b"\x10\x20")) == b"\x10\x20"

    def test_short_notification_not_counted(self) -> None:
        framer = TransportFramer()
        assert framer.ingest_notification(b"\x01\x00\x00") is None
        assert framer.packet_count == 0
        assert framer.last_position is None

    def test_reset(self) -> None:
        framer = TransportFramer()
        framer.ingest(_packet(1, 0))
        framer.ingest(_packet(5, 0))
        framer.reset()
        assert framer.dropped_frames == 0
        assert framer.packet_count == 0
        assert framer.last_position is None
        framer.ingest(_packet(100, 0))
        assert framer.dropped_frames == 0
