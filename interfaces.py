"""Protocol interfaces used by PipelineOrchestrator."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from models import AnswerOutcome, CaptureOutcome, TranscriptionOutcome


class CaptureGateway(Protocol):
    def capture_image(self) -> CaptureOutcome: ...

    def capture_audio(
        self,
        duration_s: int,
        on_started: Optional[Callable[[], None]] = None,
    ) -> CaptureOutcome: ...


class Transcriber(Protocol):
    def transcribe(self, audio: bytes) -> TranscriptionOutcome: ...


class AnswerClient(Protocol):
    def answer(self, transcript: str, image: Optional[bytes]) -> AnswerOutcome: ...


class DebugSink(Protocol):
    def save(self, audio: bytes, image: Optional[bytes]) -> None: ...
