"""Data models."""

from voicebridge.models.agent_event import AgentEvent
from voicebridge.models.enums import EntrySource, EntryStatus
from voicebridge.models.transcript import TranscriptEntry

__all__ = ["AgentEvent", "EntrySource", "EntryStatus", "TranscriptEntry"]
