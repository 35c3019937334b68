"""Asynchronous agent event model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class AgentEvent(BaseModel):
    """An out-of-band event pushed by the agent, e.g. a sub-agent result.

    ``timestamp`` is milliseconds since the Unix epoch.
    """

    type: str
    text: str
    timestamp: int

    @classmethod
    def from_payload(cls, item: Any) -> AgentEvent | None:
        """Build an event from one JSON item, or None if it is malformed."""
        if not isinstance(item, dict):
            return None
        type_ = item.get("type")
        text = item.get("text")
        ts = item.get("timestamp")
        if not isinstance(type_, str) or not isinstance(text, str):
            return None
        if not isinstance(ts, int) or isinstance(ts, bool):
            return None
        return cls(type=type_, text=text, timestamp=ts)
