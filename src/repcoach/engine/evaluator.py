"""
Single entry point of the engine.

    evaluate(previous_state, pose_frame, config) -> new_state

Pipeline per frame:
    1. Rest countdown (RESTING frames stop here)
    2. Geometry + form evaluation for the active exercise
    3. Repetition state machine transition
    4. Set/Rest scheduler on the rep that reaches the target

The previous state is never modified; all state lives in the returned record.
"""

import logging
import time
from typing import Optional

from ..config import MIN_KEYPOINT_CONFIDENCE, MIN_REP_COOLDOWN_SECONDS, REP_COOLDOWN_SECONDS
from .exercises import ExerciseConfig
from .form import evaluate_form
from .geometry import PoseFrame
from .scheduler import tick_rest
from .state import MotionState, SessionState
from .state_machine import step

logger = logging.getLogger(__name__)


def evaluate(
    previous: SessionState,
    frame: Optional[PoseFrame],
    config: Optional[ExerciseConfig],
    now: Optional[float] = None,
    min_confidence: float = MIN_KEYPOINT_CONFIDENCE,
    cooldown: float = REP_COOLDOWN_SECONDS,
) -> SessionState:
    """Evaluate one pose frame and return the next session state.

    Args:
        previous: State returned by the previous call (or a fresh one).
        frame: Keypoints for this instant; None when nothing was detected.
        config: Configuration for ``previous.exercise`` with session
            overrides applied. Ignored when the exercise is ``none``.
        now: Wall-clock seconds for this frame (default: ``time.time()``).
        min_confidence: Keypoints scored below this count as missing.
        cooldown: Minimum seconds between two counted reps; values below
            ``MIN_REP_COOLDOWN_SECONDS`` are raised to it.

    Returns:
        A new SessionState. Feedback, flagged regions and events describe
        this frame only.
    """
    if not previous.is_active or config is None:
        return previous
    if config.exercise is not previous.exercise:
        logger.warning(
            "Config for '%s' passed with a '%s' session; ignoring frame.",
            config.exercise.value, previous.exercise.value,
        )
        return previous

    now = time.time() if now is None else now
    cooldown = max(MIN_REP_COOLDOWN_SECONDS, cooldown)
    state = previous.model_copy(deep=True)
    state.feedback = []
    state.flagged_regions = []
    state.events = []
    state.form_valid = True

    if state.motion_state is MotionState.RESTING and tick_rest(state, config, now):
        return state

    result = evaluate_form(frame, config, state.motion_state, min_confidence)
    state.form_valid = result.form_valid
    state.flagged_regions = list(result.flagged_regions)
    state.feedback.extend(result.feedback)

    if result.metric is None:
        # Required landmarks missing: no state-machine progress
        return state

    for region in result.flagged_regions:
        if region not in state.current_set_issues:
            state.current_set_issues.append(region)

    step(state, result.metric, result.form_valid, config, now, cooldown)
    return state
