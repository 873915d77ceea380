"""
Exercise evaluation engine.

Turns a stream of 2-D pose frames into repetition counts, set/rest
progress and per-frame form feedback for five exercises.
"""

from .evaluator import evaluate
from .exercises import (
    EXERCISES,
    ExerciseConfig,
    ExerciseType,
    HysteresisBand,
    SessionOverrides,
    get_all_exercises,
    get_exercise_config,
    parse_exercise,
)
from .form import FormResult, evaluate_form
from .geometry import Keypoint, PoseFrame, angle_at, lookup
from .session import TrackingSession
from .state import (
    EventKind,
    MotionState,
    SessionEvent,
    SessionState,
    SetRecord,
    init_session_state,
)

__all__ = [
    "evaluate",
    "EXERCISES",
    "ExerciseConfig",
    "ExerciseType",
    "HysteresisBand",
    "SessionOverrides",
    "get_all_exercises",
    "get_exercise_config",
    "parse_exercise",
    "FormResult",
    "evaluate_form",
    "Keypoint",
    "PoseFrame",
    "angle_at",
    "lookup",
    "TrackingSession",
    "EventKind",
    "MotionState",
    "SessionEvent",
    "SessionState",
    "SetRecord",
    "init_session_state",
]
