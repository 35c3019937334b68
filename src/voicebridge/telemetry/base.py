"""Telemetry provider ABC, span bookkeeping, SpanKind and Attr constants."""

from __future__ import annotations

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

Clock = Callable[[], float]


class SpanKind(StrEnum):
    """What a span measures."""

    STREAM_SESSION = "stream.session"
    UTTERANCE = "vad.utterance"
    STT_TRANSCRIBE = "stt.transcribe"
    AGENT_SEND = "agent.send"
    CUSTOM = "custom"


class Attr:
    """Attribute keys shared by spans and metrics."""

    PROVIDER = "provider"
    MODEL = "model"
    UTTERANCE_ID = "utterance_id"
    DURATION_MS = "duration_ms"

    PACKET_COUNT = "transport.packet_count"
    DROPPED_FRAMES = "transport.dropped_frames"
    CODEC_ID = "transport.codec_id"

    SAMPLE_RATE = "audio.sample_rate"
    SAMPLE_COUNT = "audio.sample_count"
    AUDIO_SECONDS = "audio.seconds"

    STT_TEXT_LENGTH = "stt.text_length"
    STT_LANGUAGE = "stt.language"
    STT_OUTCOME = "stt.outcome"


@dataclass
class Span:
    """One timed operation.

    ``start`` and ``end`` are readings of the provider's monotonic clock,
    so durations stay meaningful when tests drive time by hand.
    """

    kind: SpanKind
    name: str
    start: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    parent_id: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    end: float | None = None
    status: str = "ok"
    error_message: str | None = None

    @property
    def duration_ms(self) -> float | None:
        if self.end is None:
            return None
        return (self.end - self.start) * 1000

    @property
    def is_error(self) -> bool:
        return self.status == "error"


class SpanRecorder:
    """Tracks open spans and closes them against a clock.

    Shared by providers that keep span objects around; ``close`` returns
    None for ids it never opened (including the noop id).
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._open: dict[str, Span] = {}

    @property
    def active(self) -> list[Span]:
        return list(self._open.values())

    def open(
        self,
        kind: SpanKind,
        name: str,
        parent_id: str | None,
        attributes: dict[str, Any] | None,
    ) -> Span:
        span = Span(
            kind=kind,
            name=name,
            start=self._clock(),
            parent_id=parent_id,
            attributes=dict(attributes or {}),
        )
        self._open[span.id] = span
        return span

    def close(
        self,
        span_id: str,
        status: str,
        error_message: str | None,
        attributes: dict[str, Any] | None,
    ) -> Span | None:
        span = self._open.pop(span_id, None)
        if span is None:
            return None
        span.end = self._clock()
        span.status = status
        span.error_message = error_message
        span.attributes.update(attributes or {})
        return span

    def clear(self) -> None:
        self._open.clear()


class TelemetryProvider(ABC):
    """Receives spans and metrics from the stream, STT and agent layers.

    ``NoopTelemetryProvider`` is the default everywhere a provider is
    optional.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def start_span(
        self,
        kind: SpanKind,
        name: str,
        *,
        parent_id: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> str:
        """Open a span and return its id."""

    @abstractmethod
    def end_span(
        self,
        span_id: str,
        *,
        status: str = "ok",
        error_message: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        """Close *span_id*, merging *attributes* into it.  Unknown ids are ignored."""

    @abstractmethod
    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None: ...

    def close(self) -> None:  # noqa: B027
        """Flush and release resources."""

    def reset(self) -> None:  # noqa: B027
        """Forget recorded state."""

    @contextmanager
    def span(
        self,
        kind: SpanKind,
        name: str,
        *,
        parent_id: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[dict[str, Any], None, None]:
        """Wrap a block in a span.

        Yields a dict; whatever the block puts in it is attached to the span
        when it ends.  An exception ends the span with ``error`` status and
        propagates.
        """
        span_id = self.start_span(kind, name, parent_id=parent_id, attributes=attributes)
        late: dict[str, Any] = {}
        try:
            yield late
        except Exception as exc:
            self.end_span(span_id, status="error", error_message=str(exc), attributes=late)
            raise
        self.end_span(span_id, attributes=late)
