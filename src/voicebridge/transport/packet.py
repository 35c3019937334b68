"""Wire format of a single BLE audio notification."""

from __future__ import annotations

import struct
from dataclasses import dataclass

HEADER_BYTES = 3
"""``[packet_id (uint16 LE), chunk_index (uint8)]`` precedes every payload."""

_HEADER = struct.Struct("<HB")


@dataclass(frozen=True)
class TransportPacket:
    """One notification from the audio data characteristic.

    A codec frame may be split across several notifications that share a
    ``packet_id``; ``chunk_index`` counts up from 0 within each packet id.
    """

    packet_id: int
    """Packet sequence number, wraps at 65536."""

    chunk_index: int
    """Chunk position within the packet, wraps at 256."""

    payload: bytes
    """PCM16LE sample bytes (may split a sample across notifications)."""

    def __post_init__(self) -> None:
        if not 0 <= self.packet_id <= 0xFFFF:
            raise ValueError(f"packet_id must fit in uint16, got {self.packet_id}")
        if not 0 <= self.chunk_index <= 0xFF:
            raise ValueError(f"chunk_index must fit in uint8, got {self.chunk_index}")

    @classmethod
    def parse(cls, data: bytes) -> TransportPacket | None:
        """Parse a raw notification value.

        Returns ``None`` when the notification carries no payload beyond the
        header (malformed or empty notification).
        """
        if len(data) <= HEADER_BYTES:
            return None
        packet_id, chunk_index = _HEADER.unpack_from(data)
        return cls(packet_id=packet_id, chunk_index=chunk_index, payload=bytes(data[HEADER_BYTES:]))

    def to_bytes(self) -> bytes:
        """Serialize back to the notification wire format."""
        return _HEADER.pack(self.packet_id, self.chunk_index) + self.payload
