"""Telemetry provider that writes one log line per finished span."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import Any

from voicebridge.telemetry.base import Clock, SpanKind, SpanRecorder, TelemetryProvider

logger = logging.getLogger("voicebridge.telemetry")


def _format_attrs(attributes: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in attributes.items())


class ConsoleTelemetryProvider(TelemetryProvider):
    """Logs finished spans to the ``voicebridge.telemetry`` logger.

    Metric points are summed per name and logged as totals on
    :meth:`close`, so per-packet metrics such as dropped frames do not
    flood the log.

    Example::

        logging.basicConfig(level=logging.INFO)
        bridge = VoiceBridge(..., telemetry=ConsoleTelemetryProvider())
    """

    def __init__(self, *, level: int = logging.INFO, clock: Clock = time.monotonic) -> None:
        self._level = level
        self._recorder = SpanRecorder(clock)
        self._totals: defaultdict[str, float] = defaultdict(float)
        self._units: dict[str, str] = {}

    @property
    def name(self) -> str:
        return "console"

    @property
    def totals(self) -> dict[str, float]:
        """Per-name sums of recorded metric values."""
        return dict(self._totals)

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
        if span is None:
            return
        line = f"{span.kind} {span.name} {span.duration_ms:.1f}ms {_format_attrs(span.attributes)}"
        if span.is_error:
            logger.log(self._level, "[span failed] %s error=%s", line.rstrip(), error_message)
        else:
            logger.log(self._level, "[span] %s", line.rstrip())

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        self._totals[name] += value
        if unit:
            self._units[name] = unit

    def close(self) -> None:
        for name, total in sorted(self._totals.items()):
            unit = self._units.get(name)
            suffix = f" {unit}" if unit else ""
            logger.log(self._level, "[metric] %s total=%g%s", name, total, suffix)
        open_spans = self._recorder.active
        if open_spans:
            logger.warning(
                "Telemetry closed with %d open spans: %s",
                len(open_spans),
                ", ".join(s.name for s in open_spans),
            )
        self.reset()

    def reset(self) -> None:
        self._recorder.clear()
        self._totals.clear()
        self._units.clear()
