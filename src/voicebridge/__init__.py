"""voicebridge - BLE audio to utterances, transcription and a conversational agent."""

from voicebridge._version import __version__
from voicebridge.agent.base import (
    AgentAPIError,
    AgentClient,
    AgentError,
    AgentHTTPError,
    GatewayTimeoutError,
    InvalidRequestError,
)
from voicebridge.agent.http import AgentClientConfig, HTTPAgentClient
from voicebridge.agent.mock import MockAgentClient
from voicebridge.agent.poller import EventPoller
from voicebridge.audio.conditioner import ConditionerConfig, SignalConditioner
from voicebridge.audio.pcm import PCMDecoder
from voicebridge.audio.preroll import PreRollBuffer
from voicebridge.audio.resampler.base import ResamplerProvider
from voicebridge.audio.resampler.linear import LinearResamplerProvider
from voicebridge.audio.wav import encode_wav
from voicebridge.config import BridgeConfig
from voicebridge.core.bridge import VoiceBridge
from voicebridge.core.errors import (
    ConfigurationError,
    RecognizerUnavailableError,
    StreamNotReadyError,
    UnsupportedCodecError,
    VoiceBridgeError,
)
from voicebridge.core.finalizer import Utterance, UtteranceFinalizer
from voicebridge.core.retry import RetryPolicy, retry_with_backoff
from voicebridge.core.stream import AudioStream, StreamConfig, StreamStats
from voicebridge.models import AgentEvent, EntrySource, EntryStatus, TranscriptEntry
from voicebridge.recognition.base import GatingRecognizer
from voicebridge.recognition.mock import MockGatingRecognizer
from voicebridge.recognition.session import RecognitionSessionManager
from voicebridge.stt.base import (
    AudioTooShortError,
    HallucinationDetectedError,
    NoSpeechError,
    STTProvider,
    TranscriptionError,
    TranscriptionResult,
)
from voicebridge.stt.filters import HallucinationFilter
from voicebridge.stt.mock import MockSTTProvider
from voicebridge.stt.whisper import WhisperConfig, WhisperSTTProvider
from voicebridge.telemetry import (
    ConsoleTelemetryProvider,
    MockTelemetryProvider,
    NoopTelemetryProvider,
    TelemetryProvider,
)
from voicebridge.transport.codec import CodecId
from voicebridge.transport.framer import TransportFramer
from voicebridge.transport.packet import TransportPacket
from voicebridge.vad.base import VADConfig, VADEvent, VADEventType, VADPhase
from voicebridge.vad.segmenter import VADSegmenter

__all__ = [
    "__version__",
    # Agent
    "AgentAPIError",
    "AgentClient",
    "AgentClientConfig",
    "AgentError",
    "AgentEvent",
    "AgentHTTPError",
    "EventPoller",
    "GatewayTimeoutError",
    "HTTPAgentClient",
    "InvalidRequestError",
    "MockAgentClient",
    # Audio
    "ConditionerConfig",
    "LinearResamplerProvider",
    "PCMDecoder",
    "PreRollBuffer",
    "ResamplerProvider",
    "SignalConditioner",
    "encode_wav",
    # Core
    "AudioStream",
    "BridgeConfig",
    "ConfigurationError",
    "RecognizerUnavailableError",
    "RetryPolicy",
    "StreamConfig",
    "StreamNotReadyError",
    "StreamStats",
    "UnsupportedCodecError",
    "Utterance",
    "UtteranceFinalizer",
    "VoiceBridge",
    "VoiceBridgeError",
    "retry_with_backoff",
    # Models
    "EntrySource",
    "EntryStatus",
    "TranscriptEntry",
    # Recognition
    "GatingRecognizer",
    "MockGatingRecognizer",
    "RecognitionSessionManager",
    # STT
    "AudioTooShortError",
    "HallucinationDetectedError",
    "HallucinationFilter",
    "MockSTTProvider",
    "NoSpeechError",
    "STTProvider",
    "TranscriptionError",
    "TranscriptionResult",
    "WhisperConfig",
    "WhisperSTTProvider",
    # Telemetry
    "ConsoleTelemetryProvider",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "TelemetryProvider",
    # Transport
    "CodecId",
    "TransportFramer",
    "TransportPacket",
    # VAD
    "VADConfig",
    "VADEvent",
    "VADEventType",
    "VADPhase",
    "VADSegmenter",
]
