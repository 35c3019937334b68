"""sherpa-onnx streaming gating recognizer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from voicebridge.recognition.base import GatingRecognizer, ResultCallback

logger = logging.getLogger(__name__)


@dataclass
class SherpaOnnxGatingConfig:
    """Configuration for the sherpa-onnx gating recognizer.

    Attributes:
        tokens: Path to ``tokens.txt``.
        encoder: Path to encoder ``.onnx`` model.
        decoder: Path to decoder ``.onnx`` model.
        joiner: Path to joiner ``.onnx`` model.
        sample_rate: Sample rate the model expects.
        num_threads: Number of CPU threads for inference.
        provider: ONNX execution provider (``"cpu"`` or ``"cuda"``).
    """

    tokens: str = ""
    encoder: str = ""
    decoder: str = ""
    joiner: str = ""
    sample_rate: int = 16000
    num_threads: int = 1
    provider: str = "cpu"


@dataclass
class _Session:
    """One recognition task: its stream, callback and undecoded audio."""

    stream: Any
    callback: ResultCallback
    pending: list[float] = field(default_factory=list)
    task: asyncio.Task[None] | None = None
    last_text: str = ""
    finished: bool = False


class SherpaOnnxGatingRecognizer(GatingRecognizer):
    """Gating recognizer backed by a sherpa-onnx transducer ``OnlineRecognizer``.

    Audio is buffered on the event loop and decoded in a worker thread via
    ``asyncio.to_thread``; partial text is reported back on the loop.  A
    task started for an earlier session keeps its own stream and callback,
    so results it reports late are tagged with that session.
    """

    def __init__(self, config: SherpaOnnxGatingConfig) -> None:
        try:
            import sherpa_onnx  # noqa: F401
        except ImportError as exc:
            raise ImportError(
                "sherpa-onnx is required for SherpaOnnxGatingRecognizer. "
                "Install it with: pip install voicebridge[sherpa-onnx]"
            ) from exc
        self._config = config
        self._sherpa = __import__("sherpa_onnx")
        self._recognizer: Any = None
        self._session: _Session | None = None

    @property
    def name(self) -> str:
        return "SherpaOnnxGating"

    @property
    def sample_rate(self) -> int:
        return self._config.sample_rate

    @property
    def is_available(self) -> bool:
        cfg = self._config
        return all(Path(p).is_file() for p in (cfg.tokens, cfg.encoder, cfg.decoder, cfg.joiner))

    def _get_recognizer(self) -> Any:
        """Lazily create the OnlineRecognizer."""
        if self._recognizer is None:
            cfg = self._config
            self._recognizer = self._sherpa.OnlineRecognizer.from_transducer(
                tokens=cfg.tokens,
                encoder=cfg.encoder,
                decoder=cfg.decoder,
                joiner=cfg.joiner,
                num_threads=cfg.num_threads,
                sample_rate=cfg.sample_rate,
                feature_dim=80,
                provider=cfg.provider,
            )
        return self._recognizer

    async def warmup(self) -> None:
        await asyncio.to_thread(self._get_recognizer)
        logger.info("Gating recognizer model loaded")

    def start(self, on_result: ResultCallback) -> None:
        self.stop()
        stream = self._get_recognizer().create_stream()
        self._session = _Session(stream=stream, callback=on_result)

    def accept(self, samples: Sequence[float]) -> None:
        session = self._session
        if session is None or not samples:
            return
        session.pending.extend(samples)
        if session.task is None or session.task.done():
            session.task = asyncio.get_running_loop().create_task(
                self._drain(session), name="gating-recognizer-decode"
            )

    def stop(self) -> None:
        session = self._session
        self._session = None
        if session is not None:
            session.finished = True

    async def _drain(self, session: _Session) -> None:
        """Decode buffered audio until the session runs dry or ends."""
        while session.pending and not session.finished:
            chunk, session.pending = session.pending, []
            try:
                text = await asyncio.to_thread(self._decode, session.stream, chunk)
            except Exception:
                logger.exception("Gating recognizer decode failed, dropping buffered audio")
                session.pending.clear()
                return
            if text and text != session.last_text:
                session.last_text = text
                session.callback(text, False)

    def _decode(self, stream: Any, samples: list[float]) -> str:
        recognizer = self._get_recognizer()
        stream.accept_waveform(self._config.sample_rate, samples)
        while recognizer.is_ready(stream):
            recognizer.decode_stream(stream)
        return str(recognizer.get_result(stream)).strip()

    def close(self) -> None:
        self.stop()
        self._recognizer = None
