"""Transcript entry model."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from voicebridge.models.enums import EntrySource, EntryStatus


class TranscriptEntry(BaseModel):
    """One user message and the agent's reply to it.

    Replies are applied by ``id`` so that a slow request never lands on a
    newer entry.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_message: str
    reply: str = ""
    status: EntryStatus = EntryStatus.LOADING
    source: EntrySource = EntrySource.SPEECH
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_loading(self) -> bool:
        return self.status == EntryStatus.LOADING

    @property
    def is_error(self) -> bool:
        return self.status == EntryStatus.ERROR
