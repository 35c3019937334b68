"""Enumerations shared across models."""

from __future__ import annotations

from enum import StrEnum


class EntryStatus(StrEnum):
    """Lifecycle of a transcript entry's agent reply."""

    LOADING = "loading"
    DONE = "done"
    ERROR = "error"


class EntrySource(StrEnum):
    """Where the user side of a transcript entry came from."""

    SPEECH = "speech"
    MANUAL = "manual"
    NOTIFICATION = "notification"
