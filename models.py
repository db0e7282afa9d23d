"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PipelineState(str, Enum):
    IDLE = "IDLE"
    CAPTURING_IMAGE = "CAPTURING_IMAGE"
    CAPTURING_AUDIO = "CAPTURING_AUDIO"
    TRANSCRIBING = "TRANSCRIBING"
    ANSWERING = "ANSWERING"


class StatusKind(str, Enum):
    RECORDING_STARTED = "recording_started"
    TRANSCRIBED = "transcribed"
    CAPTURE_FAILED = "capture_failed"
    ANSWERED = "answered"
    ANSWER_FAILED = "answer_failed"


TERMINAL_KINDS = frozenset(
    {
        StatusKind.CAPTURE_FAILED.value,
        StatusKind.ANSWERED.value,
        StatusKind.ANSWER_FAILED.value,
    }
)


@dataclass(frozen=True)
class StatusEvent:
    kind: str
    text: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    @classmethod
    def recording_started(cls) -> "StatusEvent":
        return cls(kind=StatusKind.RECORDING_STARTED.value)

    @classmethod
    def transcribed(cls, text: str) -> "StatusEvent":
        return cls(kind=StatusKind.TRANSCRIBED.value, text=text)

    @classmethod
    def capture_failed(cls, message: str) -> "StatusEvent":
        return cls(kind=StatusKind.CAPTURE_FAILED.value, text=message)

    @classmethod
    def answered(cls, text: str) -> "StatusEvent":
        return cls(kind=StatusKind.ANSWERED.value, text=text)

    @classmethod
    def answer_failed(cls, message: str) -> "StatusEvent":
        return cls(kind=StatusKind.ANSWER_FAILED.value, text=message)


@dataclass
class CaptureOutcome:
    data: Optional[bytes] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.data is not None and not self.error


@dataclass
class CaptureResult:
    image_bytes: Optional[bytes] = None
    audio_bytes: Optional[bytes] = None
    image_error: str = ""
    audio_error: str = ""


@dataclass
class TranscriptionOutcome:
    text: str = ""
    error_kind: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.error_kind

    @classmethod
    def success(cls, text: str) -> "TranscriptionOutcome":
        return cls(text=text)

    @classmethod
    def failure(cls, error_kind: str, message: str) -> "TranscriptionOutcome":
        return cls(error_kind=error_kind, message=message)


@dataclass
class AnswerOutcome:
    text: str = ""
    error_kind: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.error_kind

    @classmethod
    def success(cls, text: str) -> "AnswerOutcome":
        return cls(text=text)

    @classmethod
    def failure(cls, error_kind: str, message: str) -> "AnswerOutcome":
        return cls(error_kind=error_kind, message=message)


class DisplayView(str, Enum):
    READY = "READY"
    PREPARING = "PREPARING"
    LISTENING = "LISTENING"
    SHOWING_TRANSCRIPT = "SHOWING_TRANSCRIPT"
    SHOWING_ANSWER = "SHOWING_ANSWER"


@dataclass(frozen=True)
class DisplayState:
    view: DisplayView
    text: str = ""

    @classmethod
    def ready(cls, message: str = "Ready") -> "DisplayState":
        return cls(view=DisplayView.READY, text=message)

    @classmethod
    def preparing(cls) -> "DisplayState":
        return cls(view=DisplayView.PREPARING)

    @classmethod
    def listening(cls) -> "DisplayState":
        return cls(view=DisplayView.LISTENING)

    @classmethod
    def showing_transcript(cls, text: str) -> "DisplayState":
        return cls(view=DisplayView.SHOWING_TRANSCRIPT, text=text)

    @classmethod
    def showing_answer(cls, text: str) -> "DisplayState":
        return cls(view=DisplayView.SHOWING_ANSWER, text=text)


@dataclass(frozen=True)
class RenderedView:
    style: str
    body: str
    label: str = ""
    footer: str = ""
