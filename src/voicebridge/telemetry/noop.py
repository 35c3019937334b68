"""Telemetry provider that discards everything."""

from __future__ import annotations

from typing import Any

from voicebridge.telemetry.base import SpanKind, TelemetryProvider

NOOP_SPAN_ID = "noop"


class NoopTelemetryProvider(TelemetryProvider):
    @property
    def name(self) -> str:
        return "noop"

    def start_span(
        self,
        kind: SpanKind,
        name: str,
        *,
        parent_id: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> str:
        return NOOP_SPAN_ID

    def end_span(
        self,
        span_id: str,
        *,
        status: str = "ok",
        error_message: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        return None

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        return None
