"""Transport framer: reassembles codec bytes and estimates frame loss."""

from __future__ import annotations

import logging

from voicebridge.transport.packet import TransportPacket

logger = logging.getLogger(__name__)


class TransportFramer:
    """Turns notification packets into codec bytes and tracks sequence gaps.

    Each packet's payload is handed on independently; there is no
    end-of-frame marker on the wire.  The dropped-frame estimate is a
    best-effort metric: packet-id wraparound and chunk-index overflow can
    under- or over-count.
    """

    def __init__(self) -> None:
        self._last: tuple[int, int] | None = None
        self._dropped = 0
        self._packets = 0

    @property
    def dropped_frames(self) -> int:
        """Estimated number of frames lost since the last reset."""
        return self._dropped

    @property
    def packet_count(self) -> int:
        """Number of packets accepted since the last reset."""
        return self._packets

    @property
    def last_position(self) -> tuple[int, int] | None:
        """``(packet_id, chunk_index)`` of the last packet, or None."""
        return self._last

    def ingest(self, packet: TransportPacket) -> bytes:
        """Account for *packet* and return its codec bytes."""
        self._update_loss_estimate(packet.packet_id, packet.chunk_index)
        self._packets += 1
        return packet.payload

    def ingest_notification(self, data: bytes) -> bytes | None:
        """Parse and ingest a raw notification.

        Returns ``None`` (and counts nothing) for notifications that carry
        no payload beyond the 3-byte header.
        """
        packet = TransportPacket.parse(data)
        if packet is None:
            logger.debug("Dropping short notification (%d bytes)", len(data))
            return None
        return self.ingest(packet)

    def _update_loss_estimate(self, packet_id: int, chunk_index: int) -> None:
        if self._last is None:
            self._last = (packet_id, chunk_index)
            return

        last_packet_id, last_chunk_index = self._last
        if packet_id == last_packet_id:
            if chunk_index != (last_chunk_index + 1) % 256:
                self._dropped += 1
        else:
            gap = (packet_id - last_packet_id) % 65536
            if gap > 1:
                self._dropped += gap - 1
            # A packet that starts mid-sequence lost its leading chunks.
            if chunk_index > 0:
                self._dropped += chunk_index

        self._last = (packet_id, chunk_index)

    def reset(self) -> None:
        """Forget sequence position and counters (new stream)."""
        self._last = None
        self._dropped = 0
        self._packets = 0
