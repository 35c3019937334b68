"""BLE transport: notification parsing, codec identity, loss accounting."""

from voicebridge.transport.codec import (
    CodecId,
    is_supported_codec,
    parse_codec_value,
    sample_rate_for,
)
from voicebridge.transport.framer import TransportFramer
from voicebridge.transport.packet import HEADER_BYTES, TransportPacket

__all__ = [
    "HEADER_BYTES",
    "CodecId",
    "TransportFramer",
    "TransportPacket",
    "is_supported_codec",
    "parse_codec_value",
    "sample_rate_for",
]
