"""
Session state threaded through every evaluation call.

The caller owns the SessionState: it passes the previous state in, gets a
new one back, and keeps nothing else. Feedback, flagged regions and events
are rebuilt on every call; counters and motion state carry over.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .exercises import ExerciseType, parse_exercise


class MotionState(str, Enum):
    STARTING = "starting"
    UP = "up"
    DOWN = "down"
    RESTING = "resting"
    INCORRECT_FORM = "incorrect_form"


class EventKind(str, Enum):
    REP_COUNTED = "rep_counted"
    SET_COMPLETED = "set_completed"
    WORKOUT_COMPLETED = "workout_completed"
    REST_FINISHED = "rest_finished"


# ============================================================================
# Output events and per-set records
# ============================================================================

class SessionEvent(BaseModel):
    """Something the host may react to (audio cue, haptics, UI toast)."""
    kind: EventKind
    timestamp: float
    rep_count: int = Field(description="Reps in the current set after the event")
    set_count: int = Field(description="Sets completed after the event")
    total_reps: int


class SetRecord(BaseModel):
    """Summary of one completed set."""
    set_number: int = Field(description="1-indexed")
    reps: int
    correct_form_reps: int
    form_issues: list[str] = Field(
        default_factory=list,
        description="Body regions flagged at least once during the set",
    )
    completed: bool = True


# ============================================================================
# State Model
# ============================================================================

class SessionState(BaseModel):
    """
    Aggregate, serializable record of one exercise session.

    Invariants:
        0 <= rep_count < target_reps (reaching the target resets it to 0)
        set_count <= target_sets
    """
    exercise: ExerciseType = ExerciseType.NONE
    motion_state: MotionState = MotionState.STARTING
    armed: bool = Field(
        default=False,
        description="Metric has crossed the exit threshold for the next transition",
    )
    paused_from: Optional[MotionState] = Field(
        default=None,
        description="UP or DOWN while paused in INCORRECT_FORM",
    )

    # Counters
    rep_count: int = Field(default=0, ge=0)
    set_count: int = Field(default=0, ge=0)
    total_reps: int = Field(default=0, ge=0)
    correct_form_reps: int = Field(default=0, ge=0)

    # Last counted rep, or start of the current rest period
    last_rep_timestamp: Optional[float] = None

    # Per-frame verdict (rebuilt every call)
    form_valid: bool = True
    flagged_regions: list[str] = Field(default_factory=list)
    feedback: list[str] = Field(default_factory=list)
    events: list[SessionEvent] = Field(default_factory=list)

    # Per-set history
    current_set_issues: list[str] = Field(default_factory=list)
    set_history: list[SetRecord] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.exercise is not ExerciseType.NONE

    @property
    def form_accuracy(self) -> float:
        """Share of counted reps done with correct form (0-1)."""
        if self.total_reps == 0:
            return 0.0
        return self.correct_form_reps / self.total_reps


def init_session_state(exercise=ExerciseType.NONE) -> SessionState:
    """Fresh state for a newly selected exercise: counters zero, STARTING."""
    return SessionState(exercise=parse_exercise(exercise))
