"""Gating recognizers and recognition session management."""

from voicebridge.recognition.base import GatingRecognizer, ResultCallback
from voicebridge.recognition.mock import MockGatingRecognizer
from voicebridge.recognition.session import RecognitionSessionManager

__all__ = [
    "GatingRecognizer",
    "MockGatingRecognizer",
    "RecognitionSessionManager",
    "ResultCallback",
]
