"""Telemetry providers for stream, transcription and agent operations."""

from voicebridge.telemetry.base import Attr, Span, SpanKind, SpanRecorder, TelemetryProvider
from voicebridge.telemetry.console import ConsoleTelemetryProvider
from voicebridge.telemetry.mock import MetricPoint, MockTelemetryProvider
from voicebridge.telemetry.noop import NoopTelemetryProvider

__all__ = [
    "Attr",
    "ConsoleTelemetryProvider",
    "MetricPoint",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "Span",
    "SpanKind",
    "SpanRecorder",
    "TelemetryProvider",
]
