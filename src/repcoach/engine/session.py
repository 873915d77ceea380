"""
Host-side wrapper around ``evaluate`` for a frame-delivery loop.

Holds the current state between frames and fans out the events of each
evaluation to subscribers (audio cue, haptics, UI). Subscribers run after
the state has been computed; their failures are logged and never affect
evaluation.
"""

import logging
import time
from typing import Callable, Optional, Union

from ..config import get_session_overrides
from .evaluator import evaluate
from .exercises import ExerciseType, SessionOverrides, get_exercise_config, parse_exercise
from .geometry import PoseFrame
from .state import EventKind, SessionEvent, SessionState, init_session_state

logger = logging.getLogger(__name__)

Subscriber = Callable[[SessionEvent], None]


class TrackingSession:
    """Current exercise, its config and state, plus event subscribers."""

    def __init__(
        self,
        exercise: Union[ExerciseType, str] = ExerciseType.NONE,
        overrides: Optional[SessionOverrides] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self._subscribers: list[tuple[Optional[EventKind], Subscriber]] = []
        self.config = None
        self.state = init_session_state()
        self.switch_exercise(exercise, overrides)

    def switch_exercise(
        self,
        exercise: Union[ExerciseType, str],
        overrides: Optional[SessionOverrides] = None,
    ) -> SessionState:
        """Select a new exercise. The previous state is discarded."""
        exercise_type = parse_exercise(exercise)
        if exercise_type is ExerciseType.NONE:
            self.config = None
        else:
            self.config = get_exercise_config(
                exercise_type, overrides, session_defaults=get_session_overrides(),
            )
        self.state = init_session_state(exercise_type)
        logger.info("Tracking session switched to '%s'", exercise_type.value)
        return self.state

    def subscribe(self, callback: Subscriber, kind: Optional[EventKind] = None) -> Callable[[], None]:
        """Register *callback* for every event, or only events of *kind*.

        Returns:
            A function that removes the subscription.
        """
        entry = (kind, callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def push(self, frame: Optional[PoseFrame], now: Optional[float] = None) -> SessionState:
        """Evaluate one frame, store the new state and notify subscribers."""
        now = self._clock() if now is None else now
        self.state = evaluate(self.state, frame, self.config, now=now)
        for event in self.state.events:
            self._dispatch(event)
        return self.state

    def _dispatch(self, event: SessionEvent) -> None:
        for kind, callback in list(self._subscribers):
            if kind is not None and kind is not event.kind:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber failed on '%s' event", event.kind.value)
