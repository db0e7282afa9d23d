from __future__ import annotations

import threading
from typing import Callable, Optional
from unittest.mock import MagicMock

from models import (
    AnswerOutcome,
    CaptureOutcome,
    PipelineState,
    StatusEvent,
    StatusKind,
    TranscriptionOutcome,
)
from pipeline import PipelineOrchestrator
from vision_client import AzureChatAnswerClient


class FakeGateway:
    def __init__(
        self,
        image: CaptureOutcome | None = None,
        audio: CaptureOutcome | None = None,
        log: list[str] | None = None,
        announce: bool = True,
    ) -> None:
        self.image = image or CaptureOutcome(data=b"jpeg")
        self.audio = audio or CaptureOutcome(data=b"RIFFwav")
        self.log = log if log is not None else []
        self.announce = announce
        self.durations: list[int] = []
        self.release: threading.Event | None = None

    def capture_image(self) -> CaptureOutcome:
        self.log.append("image")
        return self.image

    def capture_audio(
        self,
        duration_s: int,
        on_started: Optional[Callable[[], None]] = None,
    ) -> CaptureOutcome:
        self.durations.append(duration_s)
        if on_started is not None and self.announce:
            on_started()
        self.log.append("audio")
        if self.release is not None:
            self.release.wait(timeout=2.0)
        return self.audio


class FakeTranscriber:
    def __init__(self, outcome: TranscriptionOutcome, log: list[str]) -> None:
        self.outcome = outcome
        self.log = log
        self.calls: list[bytes] = []

    def transcribe(self, audio: bytes) -> TranscriptionOutcome:
        self.calls.append(audio)
        self.log.append("transcribe")
        return self.outcome


class FakeAnswerClient:
    def __init__(self, outcome: AnswerOutcome, log: list[str]) -> None:
        self.outcome = outcome
        self.log = log
        self.calls: list[tuple[str, Optional[bytes]]] = []

    def answer(self, transcript: str, image: Optional[bytes]) -> AnswerOutcome:
        self.calls.append((transcript, image))
        self.log.append("answer")
        return self.outcome


class FakeDebugSink:
    def __init__(self) -> None:
        self.saved: list[tuple[bytes, Optional[bytes]]] = []

    def save(self, audio: bytes, image: Optional[bytes]) -> None:
        self.saved.append((audio, image))


def _build(
    gateway: FakeGateway | None = None,
    transcription: TranscriptionOutcome | None = None,
    answer: AnswerOutcome | None = None,
    answer_client: object | None = None,
    **kwargs,  # noqa: ANN003
):
    log: list[str] = []
    gateway = gateway or FakeGateway()
    gateway.log = log
    events: list[StatusEvent] = []

    def on_status(event: StatusEvent) -> None:
        log.append(f"event:{event.kind}")
        events.append(event)

    transcriber = FakeTranscriber(transcription or TranscriptionOutcome.success("red jacket"), log)
    answerer = answer_client or FakeAnswerClient(
        answer or AnswerOutcome.success("Wear the red jacket."), log
    )
    orchestrator = PipelineOrchestrator(
        gateway=gateway,
        transcriber=transcriber,
        answer_client=answerer,
        on_status=on_status,
        **kwargs,
    )
    return orchestrator, gateway, transcriber, answerer, events, log


def _terminal(events: list[StatusEvent]) -> list[StatusEvent]:
    return [e for e in events if e.is_terminal]


def test_happy_path_emits_transcript_then_answer() -> None:
    orchestrator, gateway, transcriber, answerer, events, log = _build()

    assert orchestrator.run() is True

    assert events == [
        StatusEvent.recording_started(),
        StatusEvent.transcribed("red jacket"),
        StatusEvent.answered("Wear the red jacket."),
    ]
    assert log == [
        "image",
        "event:recording_started",
        "audio",
        "transcribe",
        "event:transcribed",
        "answer",
        "event:answered",
    ]
    assert gateway.durations == [5]
    assert transcriber.calls == [b"RIFFwav"]
    assert answerer.calls == [("red jacket", b"jpeg")]
    assert orchestrator.state == PipelineState.IDLE


def test_audio_failure_is_terminal_and_skips_downstream() -> None:
    gateway = FakeGateway(audio=CaptureOutcome(error="device busy"))
    orchestrator, _, transcriber, answerer, events, _ = _build(gateway=gateway)

    orchestrator.run()

    assert events == [StatusEvent.recording_started(), StatusEvent.capture_failed("device busy")]
    assert transcriber.calls == []
    assert answerer.calls == []


def test_image_failure_is_not_fatal() -> None:
    gateway = FakeGateway(image=CaptureOutcome(error="no camera"))
    orchestrator, _, transcriber, answerer, events, _ = _build(gateway=gateway)

    orchestrator.run()

    assert transcriber.calls == [b"RIFFwav"]
    assert answerer.calls == [("red jacket", None)]
    assert events[-1] == StatusEvent.answered("Wear the red jacket.")


def test_transcription_failure_reports_capture_failed() -> None:
    orchestrator, _, _, answerer, events, _ = _build(
        transcription=TranscriptionOutcome.failure("EMPTY_RESULT", "No transcription returned")
    )

    orchestrator.run()

    assert events == [
        StatusEvent.recording_started(),
        StatusEvent.capture_failed("No transcription returned"),
    ]
    assert answerer.calls == []


def test_token_budget_exhaustion_reports_answer_failed() -> None:
    session = MagicMock()
    session.post.return_value.json.return_value = {
        "choices": [{"message": {"content": ""}, "finish_reason": "length"}]
    }
    client = AzureChatAnswerClient(endpoint="https://chat.example.com", api_key="k", deployment="d", session=session)
    orchestrator, _, _, _, events, _ = _build(answer_client=client)

    orchestrator.run()

    assert events[1] == StatusEvent.transcribed("red jacket")
    assert _terminal(events) == [
        StatusEvent.answer_failed("AI used all tokens on reasoning, no output generated. Try again.")
    ]


def test_missing_chat_key_fails_without_http() -> None:
    session = MagicMock()
    client = AzureChatAnswerClient(endpoint="https://chat.example.com", api_key="", deployment="d", session=session)
    orchestrator, _, _, _, events, _ = _build(answer_client=client)

    orchestrator.run()

    assert _terminal(events) == [StatusEvent.answer_failed("Azure OpenAI API key not configured")]
    session.post.assert_not_called()


def test_recording_started_emitted_even_if_gateway_never_announces() -> None:
    gateway = FakeGateway(audio=CaptureOutcome(error="arecord is not installed"), announce=False)
    orchestrator, _, _, _, events, _ = _build(gateway=gateway)

    orchestrator.run()

    assert [e.kind for e in events] == [
        StatusKind.RECORDING_STARTED.value,
        StatusKind.CAPTURE_FAILED.value,
    ]


def test_unexpected_exception_becomes_single_terminal_event() -> None:
    orchestrator, _, _, answerer, events, _ = _build()
    answerer.answer = MagicMock(side_effect=RuntimeError("boom"))

    orchestrator.run()

    assert _terminal(events) == [StatusEvent.answer_failed("boom")]
    assert orchestrator.state == PipelineState.IDLE
    assert orchestrator.busy is False


def test_failing_subscriber_does_not_abort_run() -> None:
    calls: list[str] = []

    def on_status(event: StatusEvent) -> None:
        calls.append(event.kind)
        raise RuntimeError("display gone")

    orchestrator = PipelineOrchestrator(
        gateway=FakeGateway(),
        transcriber=FakeTranscriber(TranscriptionOutcome.success("hi"), []),
        answer_client=FakeAnswerClient(AnswerOutcome.success("hello"), []),
        on_status=on_status,
    )
    orchestrator.run()

    assert calls == ["recording_started", "transcribed", "answered"]


def test_failing_state_listener_does_not_abort_run() -> None:
    def on_state_change(from_state: PipelineState, to_state: PipelineState) -> None:
        if to_state == PipelineState.TRANSCRIBING:
            raise RuntimeError("indicator gone")

    orchestrator, _, _, _, events, _ = _build(on_state_change=on_state_change)

    assert orchestrator.run() is True

    assert [e.kind for e in _terminal(events)] == ["answered"]
    assert orchestrator.state == PipelineState.IDLE
    assert orchestrator.busy is False


def test_debug_sink_receives_buffers() -> None:
    sink = FakeDebugSink()
    orchestrator, *_ = _build(debug_sink=sink)

    orchestrator.run()

    assert sink.saved == [(b"RIFFwav", b"jpeg")]


def test_state_transitions_follow_stages() -> None:
    transitions: list[tuple[PipelineState, PipelineState]] = []
    orchestrator, *_ = _build(on_state_change=lambda f, t: transitions.append((f, t)))

    orchestrator.run()

    assert [t for _, t in transitions] == [
        PipelineState.CAPTURING_IMAGE,
        PipelineState.CAPTURING_AUDIO,
        PipelineState.TRANSCRIBING,
        PipelineState.ANSWERING,
        PipelineState.IDLE,
    ]


def test_trigger_while_busy_is_rejected() -> None:
    gateway = FakeGateway()
    gateway.release = threading.Event()
    orchestrator, _, transcriber, _, events, _ = _build(gateway=gateway)

    assert orchestrator.trigger() is True
    assert orchestrator.trigger() is False
    assert orchestrator.run() is False

    gateway.release.set()
    orchestrator.join(timeout=2.0)

    assert orchestrator.busy is False
    assert len(transcriber.calls) == 1
    assert len(_terminal(events)) == 1

    gateway.release = None
    assert orchestrator.trigger() is True
    orchestrator.join(timeout=2.0)
    assert len(_terminal(events)) == 2
