"""
Repetition state machine.

One machine serves every exercise. It only sees the exercise's counting
metric (low = flexed = DOWN, high = extended = UP), the hysteresis band and
the form verdict for the frame:

    STARTING/UP --(armed, metric <= entry_down)--> DOWN
    DOWN --(armed, metric >= entry_up, form valid)--> UP   (rep counted)

The descent is armed once the metric has fallen through ``exit_up`` and the
ascent once it has risen through ``exit_down``. A discrete jump may arm and
transition in the same frame.

Invalid form in UP or DOWN pauses the machine in INCORRECT_FORM. Valid form
resumes it in the state it was paused from, unless the metric crossed the
opposite entry threshold meanwhile, so the pause neither grants nor loses a
rep. A rep completed inside the cooldown window of the previous one is not
counted.
"""

import logging

from .exercises import ExerciseConfig
from .scheduler import complete_set, emit
from .state import EventKind, MotionState, SessionState

logger = logging.getLogger(__name__)

_MOVING = (MotionState.UP, MotionState.DOWN)


def pause_for_form(state: SessionState) -> bool:
    """Enter INCORRECT_FORM if the machine is moving. Returns True if it did."""
    if state.motion_state not in _MOVING:
        return False
    logger.debug("Pausing in INCORRECT_FORM (was %s)", state.motion_state.value)
    state.paused_from = state.motion_state
    state.motion_state = MotionState.INCORRECT_FORM
    state.armed = False
    state.feedback.append("Fix your form to continue counting reps")
    return True


def resume_after_form(state: SessionState, metric: float, config: ExerciseConfig) -> None:
    """Leave INCORRECT_FORM for the state it was paused from.

    A pause in DOWN resumes in UP only if the metric is already at or above
    ``entry_up`` (the rep finished with bad form and is not counted). A pause
    in UP resumes in DOWN only at or below ``entry_down``.
    """
    band = config.band
    if state.paused_from is MotionState.DOWN:
        resumed = MotionState.UP if metric >= band.entry_up else MotionState.DOWN
    else:
        resumed = MotionState.DOWN if metric <= band.entry_down else MotionState.UP
    state.motion_state = resumed
    state.paused_from = None
    state.armed = False
    state.feedback.append("Good form, continue your exercise")
    logger.debug("Form corrected, resuming in %s at %.1f°", state.motion_state.value, metric)


def count_rep(
    state: SessionState,
    config: ExerciseConfig,
    form_valid: bool,
    now: float,
    cooldown: float,
) -> bool:
    """Count a completed rep unless it falls inside the cooldown window.

    Returns:
        True if the rep was counted.
    """
    last = state.last_rep_timestamp
    if last is not None and now - last < cooldown:
        logger.debug(
            "Ignoring rep %.3fs after the previous one (cooldown %.2fs)", now - last, cooldown,
        )
        return False

    state.rep_count += 1
    state.total_reps += 1
    if form_valid:
        state.correct_form_reps += 1
    state.last_rep_timestamp = now
    emit(state, EventKind.REP_COUNTED, now)
    logger.debug(
        "%s: rep %d/%d (set %d)",
        config.name, state.rep_count, config.target_reps, state.set_count + 1,
    )

    if state.rep_count >= config.target_reps:
        complete_set(state, config, now)
    return True


def step(
    state: SessionState,
    metric: float,
    form_valid: bool,
    config: ExerciseConfig,
    now: float,
    cooldown: float,
) -> None:
    """Apply one frame's metric and form verdict to the working state.

    RESTING is handled by the scheduler before this is called.
    """
    if not form_valid:
        pause_for_form(state)
        return

    if state.motion_state is MotionState.INCORRECT_FORM:
        resume_after_form(state, metric, config)
        return

    band = config.band
    if state.motion_state in (MotionState.STARTING, MotionState.UP):
        if not state.armed and metric <= band.exit_up:
            state.armed = True
        if state.armed and metric <= band.entry_down:
            state.motion_state = MotionState.DOWN
            state.armed = False
            logger.debug("%s: DOWN at %.1f°", config.name, metric)

    elif state.motion_state is MotionState.DOWN:
        if not state.armed and metric >= band.exit_down:
            state.armed = True
        if state.armed and metric >= band.entry_up:
            state.motion_state = MotionState.UP
            state.armed = False
            count_rep(state, config, form_valid, now, cooldown)
