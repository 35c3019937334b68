"""Recording telemetry provider for tests."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from voicebridge.telemetry.base import Clock, Span, SpanKind, SpanRecorder, TelemetryProvider


@dataclass
class MetricPoint:
    name: str
    value: float
    unit: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


class MockTelemetryProvider(TelemetryProvider):
    """Keeps every finished span and metric point in memory.

    Pass the test's manual clock to get deterministic span durations::

        telemetry = MockTelemetryProvider(clock=clock)
        stream = AudioStream(recognizer, telemetry=telemetry, clock=clock, ...)
        ...
        [utt] = telemetry.get_spans(SpanKind.UTTERANCE)
        assert utt.attributes[Attr.SAMPLE_COUNT] == 8000
    """

    def __init__(self, *, clock: Clock = time.monotonic) -> None:
        self._recorder = SpanRecorder(clock)
        self.spans: list[Span] = []
        self.metrics: list[MetricPoint] = []

    @property
    def name(self) -> str:
        return "mock"

    def get_spans(self, kind: SpanKind) -> list[Span]:
        return [s for s in self.spans if s.kind == kind]

    def get_active_spans(self) -> list[Span]:
        return self._recorder.active

    def get_metrics(self, name: str) -> list[MetricPoint]:
        return [m for m in self.metrics if m.name == name]

    def metric_total(self, name: str) -> float:
        """Sum of every value recorded under *name*."""
        return sum(m.value for m in self.get_metrics(name))

    def start_span(
        self,
        kind: SpanKind,
        name: str,
        *,
        parent_id: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> str:
        return self._recorder.open(kind, name, parent_id, attributes).id

    def end_span(
        self,
        span_id: str,
        *,
        status: str = "ok",
        error_message: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        span = self._recorder.close(span_id, status, error_message, attributes)
        if span is not None:
            self.spans.append(span)

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        self.metrics.append(MetricPoint(name, value, unit, dict(attributes or {})))

    def reset(self) -> None:
        self._recorder.clear()
        self.spans.clear()
        self.metrics.clear()
