"""State-machine based capture -> transcribe -> answer orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from capture import AUDIO_DURATION_S
from interfaces import AnswerClient, CaptureGateway, DebugSink, Transcriber
from models import CaptureResult, PipelineState, StatusEvent

logger = logging.getLogger(__name__)

StatusCallback = Callable[[StatusEvent], None]
StateCallback = Callable[[PipelineState, PipelineState], None]


class PipelineOrchestrator:
    """Runs one capture-and-respond pass at a time.

    Every run ends with exactly one terminal event: ``capture_failed`` when
    there is no transcript to show, ``answer_failed`` or ``answered`` once a
    transcript was published. A trigger that arrives while a run is active
    is rejected.
    """

    def __init__(
        self,
        gateway: CaptureGateway,
        transcriber: Transcriber,
        answer_client: AnswerClient,
        on_status: StatusCallback,
        debug_sink: Optional[DebugSink] = None,
        audio_duration_s: int = AUDIO_DURATION_S,
        on_state_change: Optional[StateCallback] = None,
    ) -> None:
        self._gateway = gateway
        self._transcriber = transcriber
        self._answer_client = answer_client
        self._on_status = on_status
        self._debug_sink = debug_sink
        self._audio_duration_s = audio_duration_s
        self._on_state_change = on_state_change

        self._lock = threading.RLock()
        self._state = PipelineState.IDLE
        self._busy = False
        self._run_id = 0
        self._worker: Optional[threading.Thread] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    def trigger(self) -> bool:
        """Start a run on a worker thread; False if one is already active."""
        if not self._claim():
            return False
        self._worker = threading.Thread(
            target=self._run_claimed,
            daemon=True,
            name=f"pipeline-run-{self._run_id}",
        )
        self._worker.start()
        return True

    def run(self) -> bool:
        """Execute one run on the calling thread; False if one is already active."""
        if not self._claim():
            return False
        self._run_claimed()
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        worker = self._worker
        if worker is not None:
            worker.join(timeout=timeout)

    def _claim(self) -> bool:
        with self._lock:
            if self._busy:
                logger.warning("Trigger ignored: run %d still active", self._run_id)
                return False
            self._busy = True
            self._run_id += 1
            return True

    def _run_claimed(self) -> None:
        run_id = self._run_id
        logger.info("Run %d started", run_id)
        try:
            self._execute()
        finally:
            self._transition(PipelineState.IDLE)
            with self._lock:
                self._busy = False
            logger.info("Run %d finished", run_id)

    def _execute(self) -> None:
        result = CaptureResult()

        self._transition(PipelineState.CAPTURING_IMAGE)
        try:
            image = self._gateway.capture_image()
        except Exception as exc:
            logger.exception("Image capture raised")
            result.image_error = str(exc)
        else:
            if image.ok:
                result.image_bytes = image.data
            else:
                result.image_error = image.error
        if result.image_error:
            logger.warning("Continuing without image: %s", result.image_error)

        self._transition(PipelineState.CAPTURING_AUDIO)
        recording_announced = False

        def announce_recording() -> None:
            nonlocal recording_announced
            if not recording_announced:
                recording_announced = True
                self._emit(StatusEvent.recording_started())

        try:
            audio = self._gateway.capture_audio(self._audio_duration_s, announce_recording)
        except Exception as exc:
            logger.exception("Audio capture raised")
            announce_recording()
            self._emit(StatusEvent.capture_failed(str(exc) or type(exc).__name__))
            return
        # a gateway that never launched the recorder still owes the listener its cue
        announce_recording()
        if not audio.ok:
            result.audio_error = audio.error
            self._emit(StatusEvent.capture_failed(audio.error))
            return
        result.audio_bytes = audio.data

        self._save_debug(result)

        self._transition(PipelineState.TRANSCRIBING)
        try:
            transcription = self._transcriber.transcribe(result.audio_bytes or b"")
        except Exception as exc:
            logger.exception("Transcriber raised")
            self._emit(StatusEvent.capture_failed(str(exc) or type(exc).__name__))
            return
        if not transcription.ok:
            logger.error("Transcription failed [%s]: %s", transcription.error_kind, transcription.message)
            self._emit(StatusEvent.capture_failed(transcription.message))
            return
        self._emit(StatusEvent.transcribed(transcription.text))

        self._transition(PipelineState.ANSWERING)
        try:
            answer = self._answer_client.answer(transcription.text, result.image_bytes)
        except Exception as exc:
            logger.exception("Answer client raised")
            self._emit(StatusEvent.answer_failed(str(exc) or type(exc).__name__))
            return
        if not answer.ok:
            logger.error("Answer failed [%s]: %s", answer.error_kind, answer.message)
            self._emit(StatusEvent.answer_failed(answer.message))
            return
        self._emit(StatusEvent.answered(answer.text))

    def _save_debug(self, result: CaptureResult) -> None:
        if self._debug_sink is None or result.audio_bytes is None:
            return
        try:
            self._debug_sink.save(result.audio_bytes, result.image_bytes)
        except OSError as exc:
            logger.warning("Could not save debug files: %s", exc)

    def _emit(self, event: StatusEvent) -> None:
        logger.debug("Status: %s %r", event.kind, event.text)
        try:
            self._on_status(event)
        except Exception:
            logger.exception("Status subscriber failed on %s", event.kind)

    def _transition(self, to_state: PipelineState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._on_state_change:
            try:
                self._on_state_change(from_state, to_state)
            except Exception:
                logger.exception("State subscriber failed on %s", to_state.value)
