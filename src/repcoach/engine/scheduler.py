"""
Set/Rest scheduler.

Closes a set when the rep target is reached, runs the rest countdown and
re-arms the repetition state machine afterwards. Functions operate on the
working copy of the state inside ``evaluate``.
"""

import logging

from .exercises import ExerciseConfig
from .state import EventKind, MotionState, SessionEvent, SessionState, SetRecord

logger = logging.getLogger(__name__)


def emit(state: SessionState, kind: EventKind, now: float) -> None:
    """Append an output event reflecting the counters as they are now."""
    state.events.append(SessionEvent(
        kind=kind,
        timestamp=now,
        rep_count=state.rep_count,
        set_count=state.set_count,
        total_reps=state.total_reps,
    ))


def complete_set(state: SessionState, config: ExerciseConfig, now: float) -> None:
    """Rep target reached: close the set and start resting.

    ``set_count`` saturates at ``target_sets``; completions past that only
    produce the workout-complete message.
    """
    previous_correct = sum(record.correct_form_reps for record in state.set_history)
    state.set_history.append(SetRecord(
        set_number=len(state.set_history) + 1,
        reps=state.rep_count,
        correct_form_reps=state.correct_form_reps - previous_correct,
        form_issues=sorted(state.current_set_issues),
    ))
    state.current_set_issues = []

    state.rep_count = 0
    state.motion_state = MotionState.RESTING
    state.armed = False
    state.last_rep_timestamp = now

    if state.set_count >= config.target_sets:
        state.feedback.append("Workout complete! Great job!")
        emit(state, EventKind.WORKOUT_COMPLETED, now)
        return

    state.set_count += 1
    logger.info(
        "%s: set %d/%d complete (%d total reps)",
        config.name, state.set_count, config.target_sets, state.total_reps,
    )
    emit(state, EventKind.SET_COMPLETED, now)
    if state.set_count >= config.target_sets:
        state.feedback.append("Workout complete! Great job!")
        emit(state, EventKind.WORKOUT_COMPLETED, now)
    else:
        state.feedback.append(
            f"Set {state.set_count} complete! Rest for {config.rest_seconds:.0f} seconds."
        )


def tick_rest(state: SessionState, config: ExerciseConfig, now: float) -> bool:
    """Advance the rest countdown.

    Returns:
        True while still resting (nothing else should be evaluated this
        frame), False once the machine has been re-armed to STARTING.
    """
    started = state.last_rep_timestamp if state.last_rep_timestamp is not None else now
    elapsed = now - started
    if elapsed >= config.rest_seconds:
        state.motion_state = MotionState.STARTING
        state.armed = False
        if state.set_count >= config.target_sets:
            state.feedback.append("Workout complete! Great job!")
        else:
            state.feedback.append(f"Starting set {state.set_count + 1}")
        emit(state, EventKind.REST_FINISHED, now)
        logger.debug("%s: rest over after %.1fs", config.name, elapsed)
        return False

    remaining = config.rest_seconds - elapsed
    state.feedback.append(f"Rest: {round(remaining)}s remaining")
    return True
