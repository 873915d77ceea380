"""
Shared utilities for the FastAPI backend.

- Form quality label from a count of form issues
- End-of-session summary with rule-based coaching tips
"""

import logging

from pydantic import BaseModel, Field

from ..engine.exercises import ExerciseConfig
from ..engine.state import SessionState

logger = logging.getLogger(__name__)


class SessionSummary(BaseModel):
    exercise: str
    sets_completed: int
    target_sets: int
    reps_in_current_set: int
    target_reps: int
    total_reps: int
    correct_form_reps: int
    form_accuracy: float = Field(description="Share of reps with correct form (0-1)")
    form_quality: str
    form_issues: list[str] = Field(description="Regions flagged during the session")
    workout_complete: bool
    tips: list[str]


def form_quality(issue_count: int) -> str:
    """Qualitative label: 0 issues excellent, 1 good, 2 fair, 3+ poor."""
    if issue_count <= 0:
        return "excellent"
    if issue_count == 1:
        return "good"
    if issue_count == 2:
        return "fair"
    return "poor"


# ---------------------------------------------------------------------------
# Session summary (rule-based, no LLM)
# ---------------------------------------------------------------------------

def summarize_session(state: SessionState, config: ExerciseConfig) -> SessionSummary:
    """Summarize progress and recurring form issues for the session so far."""
    issues: list[str] = []
    for record in state.set_history:
        for region in record.form_issues:
            if region not in issues:
                issues.append(region)
    for region in state.current_set_issues:
        if region not in issues:
            issues.append(region)

    workout_complete = state.set_count >= config.target_sets
    logger.debug("Summarizing %s: %d reps, issues=%s", config.name, state.total_reps, issues)
    return SessionSummary(
        exercise=config.name,
        sets_completed=state.set_count,
        target_sets=config.target_sets,
        reps_in_current_set=state.rep_count,
        target_reps=config.target_reps,
        total_reps=state.total_reps,
        correct_form_reps=state.correct_form_reps,
        form_accuracy=round(state.form_accuracy, 3),
        form_quality=form_quality(len(_issue_groups(issues))),
        form_issues=sorted(issues),
        workout_complete=workout_complete,
        tips=generate_session_tips(state, config, issues, workout_complete),
    )


def _issue_groups(regions: list[str]) -> set[str]:
    """Collapse left/right regions into one issue per body part."""
    return {region.replace("left_", "").replace("right_", "") for region in regions}


_REGION_TIPS: dict[str, str] = {
    "hip": "Keep your torso upright and your back straight.",
    "shoulder": "Keep your shoulders stable and your chest up.",
    "knee": "Track your knees over your ankles.",
    "elbow": "Keep your elbows pinned to your sides.",
    "wrist": "Pull higher so your chin clears your hands.",
    "nose": "Pull higher so your chin clears your hands.",
}


def generate_session_tips(
    state: SessionState,
    config: ExerciseConfig,
    issues: list[str],
    workout_complete: bool,
) -> list[str]:
    """Produce human-readable tips from the session counters and issues."""
    tips: list[str] = []

    if workout_complete:
        tips.append(
            f"Workout complete: {state.set_count} x {config.target_reps} {config.name.lower()}s. Great job!"
        )
    elif state.total_reps == 0:
        tips.append("No reps counted yet.")
        if config.form_instructions:
            tips.append(f"Tip: {config.form_instructions[0]}.")
    else:
        tips.append(
            f"{state.total_reps} reps so far, "
            f"set {min(state.set_count + 1, config.target_sets)} of {config.target_sets}."
        )

    groups = sorted(_issue_groups(issues))
    if not groups and state.total_reps > 0:
        tips.append("No form issues detected. Keep it up!")
    seen = set()
    for group in groups:
        tip = _REGION_TIPS.get(group)
        if tip and tip not in seen:
            tips.append(tip)
            seen.add(tip)

    return tips
