"""Reactive display state driven by pipeline status events.

The machine holds a single immutable ``DisplayState`` that is replaced on
every transition; ``render`` turns it into what the overlay shows. The
listening view is only entered on ``recording_started`` so it tracks the
real recording window.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from models import DisplayState, DisplayView, RenderedView, StatusEvent, StatusKind

logger = logging.getLogger(__name__)

RESET_AFTER_S = 30.0
ANSWER_LABEL = "Fashion AI"

ChangeCallback = Callable[[DisplayState], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]

# (current view, event kind) -> next state builder
_TRANSITIONS: dict[tuple[DisplayView, str], Callable[[str], DisplayState]] = {
    (DisplayView.PREPARING, StatusKind.RECORDING_STARTED.value): lambda _: DisplayState.listening(),
    (DisplayView.LISTENING, StatusKind.TRANSCRIBED.value): DisplayState.showing_transcript,
    (DisplayView.LISTENING, StatusKind.CAPTURE_FAILED.value): lambda m: DisplayState.ready(f"Error: {m}"),
    (DisplayView.PREPARING, StatusKind.CAPTURE_FAILED.value): lambda m: DisplayState.ready(f"Error: {m}"),
    (DisplayView.SHOWING_TRANSCRIPT, StatusKind.ANSWERED.value): DisplayState.showing_answer,
    (DisplayView.SHOWING_TRANSCRIPT, StatusKind.ANSWER_FAILED.value): lambda m: DisplayState.ready(f"AI Error: {m}"),
}

_ARMS_RESET = frozenset({StatusKind.ANSWERED.value, StatusKind.ANSWER_FAILED.value})


def render(state: DisplayState) -> RenderedView:
    view = state.view
    if view == DisplayView.LISTENING:
        return RenderedView(style="status", body="AI Listening...")
    if view == DisplayView.PREPARING:
        return RenderedView(style="ready", body="Preparing...")
    if view == DisplayView.SHOWING_ANSWER:
        return RenderedView(style="answer", label=ANSWER_LABEL, body=state.text)
    if view == DisplayView.SHOWING_TRANSCRIPT:
        return RenderedView(
            style="transcript",
            label="You said:",
            body=f'"{state.text}"',
            footer="Thinking...",
        )
    return RenderedView(style="ready", body=state.text)


def _default_timer(interval: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


class DisplayStateMachine:
    def __init__(
        self,
        request_run: Callable[[], bool],
        on_change: Optional[ChangeCallback] = None,
        reset_after_s: float = RESET_AFTER_S,
        timer_factory: TimerFactory = _default_timer,
    ) -> None:
        self._request_run = request_run
        self._on_change = on_change
        self._reset_after_s = reset_after_s
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._state = DisplayState.ready()
        self._reset_timer: Any = None
        self._reset_generation = 0

    @property
    def state(self) -> DisplayState:
        return self._state

    def trigger(self) -> bool:
        """User asked for a run; enter ``Preparing`` only if the pipeline accepts it."""
        with self._lock:
            if not self._request_run():
                logger.info("Run request rejected, display stays %s", self._state.view.value)
                return False
            self._cancel_reset_timer()
            self._set_state(DisplayState.preparing())
            return True

    def handle_status(self, event: StatusEvent) -> None:
        with self._lock:
            build = _TRANSITIONS.get((self._state.view, event.kind))
            if build is None:
                logger.warning("Ignoring %s while %s", event.kind, self._state.view.value)
                return
            self._set_state(build(event.text))
            if event.kind in _ARMS_RESET:
                self._arm_reset_timer()

    def _arm_reset_timer(self) -> None:
        self._cancel_reset_timer()
        generation = self._reset_generation

        def fire() -> None:
            self._reset_to_ready(generation)

        self._reset_timer = self._timer_factory(self._reset_after_s, fire)
        self._reset_timer.start()

    def _cancel_reset_timer(self) -> None:
        self._reset_generation += 1
        if self._reset_timer is not None:
            self._reset_timer.cancel()
            self._reset_timer = None

    def _reset_to_ready(self, generation: int) -> None:
        with self._lock:
            if generation != self._reset_generation:
                return
            self._reset_timer = None
            self._set_state(DisplayState.ready())

    def _set_state(self, new_state: DisplayState) -> None:
        old = self._state
        if old == new_state:
            return
        self._state = new_state
        logger.info("Display: %s -> %s", old.view.value, new_state.view.value)
        if self._on_change:
            self._on_change(new_state)
