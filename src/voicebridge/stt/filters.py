"""Hallucination filter for transcription output.

Transcription models fabricate stock phrases (video outros, subtitle
credits) when fed near-silent audio.  Such results are discarded.
"""

from __future__ import annotations

from collections.abc import Iterable

from voicebridge.stt.base import HallucinationDetectedError

DEFAULT_HALLUCINATION_PATTERNS: tuple[str, ...] = (
    "ご視聴ありがとうございました",
    "サブタイトル:",
    "字幕:",
    "thanks for watching",
    "thank you for watching",
    "subtitles by",
)


class HallucinationFilter:
    """Rejects empty results and results containing a known pattern.

    Matching is a case-insensitive substring test, so a pattern also catches
    results that merely contain it.
    """

    def __init__(self, patterns: Iterable[str] = DEFAULT_HALLUCINATION_PATTERNS) -> None:
        self._patterns = tuple(p.casefold() for p in patterns if p)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def is_hallucination(self, text: str) -> bool:
        trimmed = text.strip()
        if not trimmed:
            return True
        folded = trimmed.casefold()
        return any(p in folded for p in self._patterns)

    def __call__(self, text: str) -> str:
        """Return *text* trimmed, or raise :class:`HallucinationDetectedError`."""
        if self.is_hallucination(text):
            raise HallucinationDetectedError(text.strip())
        return text.strip()
