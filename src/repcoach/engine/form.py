"""
Per-exercise form evaluation.

Each evaluator extracts the exercise's counting metric from a pose frame and
runs its form checks against the rule table. A check that fails flags the
body regions involved (keypoint names) and adds a corrective message.

If any required keypoint is missing or low-confidence the frame is reported
as invalid and no check is run: form is never declared correct on
incomplete data.
"""

import logging
from typing import Callable, Optional

from pydantic import BaseModel, Field

from ..config import MIN_KEYPOINT_CONFIDENCE
from .exercises import ExerciseConfig, ExerciseType
from .geometry import (
    PoseFrame,
    angle_at,
    body_scale,
    deviation_from_down,
    lean_from_vertical,
    lookup_all,
    mean,
)
from .state import MotionState

logger = logging.getLogger(__name__)


class FormResult(BaseModel):
    """Verdict for one frame."""
    form_valid: bool = True
    metric: Optional[float] = Field(
        default=None,
        description="Counting metric (degrees); None when it could not be computed",
    )
    flagged_regions: list[str] = Field(default_factory=list)
    feedback: list[str] = Field(default_factory=list)
    measurements: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def missing(cls, message: str) -> "FormResult":
        return cls(form_valid=False, feedback=[message])

    def fail(self, message: str, *regions: str) -> None:
        self.form_valid = False
        self.feedback.append(message)
        for region in regions:
            if region not in self.flagged_regions:
                self.flagged_regions.append(region)


_ARMS = (
    "left_shoulder", "left_elbow", "left_wrist",
    "right_shoulder", "right_elbow", "right_wrist",
)
_LEGS_AND_TORSO = (
    "left_hip", "left_knee", "left_ankle", "left_shoulder",
    "right_hip", "right_knee", "right_ankle", "right_shoulder",
)
_TORSO = ("left_hip", "right_hip", "left_shoulder", "right_shoulder")


def _at_bottom(motion_state: MotionState, metric: float, config: ExerciseConfig) -> bool:
    """True in the flexed position, including the frame that would enter it."""
    return motion_state is MotionState.DOWN or metric <= config.band.entry_down


def _check_trunk_lean(
    result: FormResult,
    kp: dict,
    config: ExerciseConfig,
    message: Optional[str] = None,
    regions: tuple = _TORSO,
) -> None:
    """Fail if the mean shoulder-over-hip lean exceeds ``max_trunk_lean``.

    Without *message* the feedback reports the measured and allowed angles.
    """
    if config.max_trunk_lean is None:
        return
    lean = mean(
        lean_from_vertical(kp["left_shoulder"], kp["left_hip"]),
        lean_from_vertical(kp["right_shoulder"], kp["right_hip"]),
    )
    result.measurements["trunk_lean"] = lean
    if lean > config.max_trunk_lean:
        result.fail(
            message or f"Keep your back straight. Angle: {lean:.0f}° (Max: {config.max_trunk_lean:.0f}°)",
            *regions,
        )


def _elbow_angle(kp: dict) -> float:
    return mean(
        angle_at(kp["left_shoulder"], kp["left_elbow"], kp["left_wrist"]),
        angle_at(kp["right_shoulder"], kp["right_elbow"], kp["right_wrist"]),
    )


# ============================================================================
# Exercise evaluators
# ============================================================================

def _evaluate_squat(frame, config, motion_state, min_score) -> FormResult:
    kp = lookup_all(frame, _LEGS_AND_TORSO, min_score)
    if kp is None:
        return FormResult.missing("Cannot detect legs and torso clearly")

    knee_angle = mean(
        angle_at(kp["left_hip"], kp["left_knee"], kp["left_ankle"]),
        angle_at(kp["right_hip"], kp["right_knee"], kp["right_ankle"]),
    )
    result = FormResult(metric=knee_angle, measurements={"knee_angle": knee_angle})
    _check_trunk_lean(result, kp, config)

    scale = body_scale((kp["left_hip"], kp["left_ankle"]), (kp["right_hip"], kp["right_ankle"]))

    if config.valgus_tolerance is not None:
        tol = config.valgus_tolerance * scale
        # Knees moving towards the midline, relative to the ankles
        if kp["left_knee"].x < kp["left_ankle"].x - tol:
            result.fail("Left knee caving in. Push it outwards.", "left_knee")
        if kp["right_knee"].x > kp["right_ankle"].x + tol:
            result.fail("Right knee caving in. Push it outwards.", "right_knee")

    if config.chest_lean_tolerance is not None and _at_bottom(motion_state, knee_angle, config):
        tol = config.chest_lean_tolerance * scale
        if (kp["left_shoulder"].x < kp["left_knee"].x - tol
                or kp["right_shoulder"].x < kp["right_knee"].x - tol):
            result.fail(
                "Keep chest up, avoid excessive forward lean.",
                "left_shoulder", "right_shoulder",
            )
    return result


def _evaluate_bicep_curl(frame, config, motion_state, min_score) -> FormResult:
    kp = lookup_all(frame, _ARMS + ("left_hip", "right_hip"), min_score)
    if kp is None:
        return FormResult.missing("Cannot detect arms and torso clearly")

    elbow_angle = _elbow_angle(kp)
    result = FormResult(metric=elbow_angle, measurements={"elbow_angle": elbow_angle})
    _check_trunk_lean(result, kp, config)

    if config.max_upper_arm_deviation is not None:
        deviation = mean(
            deviation_from_down(kp["left_shoulder"], kp["left_elbow"]),
            deviation_from_down(kp["right_shoulder"], kp["right_elbow"]),
        )
        result.measurements["upper_arm_deviation"] = deviation
        if deviation > config.max_upper_arm_deviation:
            result.fail(
                f"Keep upper arms still. Movement: {deviation:.0f}° "
                f"(Max: {config.max_upper_arm_deviation:.0f}°)",
                "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
            )
    return result


def _evaluate_push_up(frame, config, motion_state, min_score) -> FormResult:
    kp = lookup_all(
        frame, _ARMS + ("left_hip", "right_hip", "left_knee", "right_knee"), min_score,
    )
    if kp is None:
        return FormResult.missing("Cannot detect all required landmarks")

    elbow_angle = _elbow_angle(kp)
    result = FormResult(metric=elbow_angle, measurements={"elbow_angle": elbow_angle})

    if config.body_line_range is not None:
        body_line = mean(
            angle_at(kp["left_shoulder"], kp["left_hip"], kp["left_knee"]),
            angle_at(kp["right_shoulder"], kp["right_hip"], kp["right_knee"]),
        )
        result.measurements["body_line"] = body_line
        low, high = config.body_line_range
        if not low <= body_line <= high:
            result.fail(
                f"Keep your body in a straight line. Angle: {body_line:.0f}° "
                f"(Range: {low:.0f}-{high:.0f}°)",
                "left_hip", "right_hip",
            )
    return result


def _evaluate_pull_up(frame, config, motion_state, min_score) -> FormResult:
    kp = lookup_all(frame, _ARMS + ("nose",), min_score)
    if kp is None:
        return FormResult.missing("Cannot detect arms and head clearly")

    elbow_angle = _elbow_angle(kp)
    wrist_y = mean(kp["left_wrist"].y, kp["right_wrist"].y)
    result = FormResult(
        metric=elbow_angle,
        measurements={"elbow_angle": elbow_angle, "chin_clearance": wrist_y - kp["nose"].y},
    )

    # Only at the top of the pull; the chin drops again on the way down
    if config.chin_above_wrist_required and elbow_angle <= config.band.entry_down:
        # Smaller y is higher in the image
        if not kp["nose"].y < wrist_y:
            result.fail(
                "Pull higher - Chin needs to clear the bar (hands)",
                "nose", "left_wrist", "right_wrist",
            )
    return result


def _evaluate_forward_lunge(frame, config, motion_state, min_score) -> FormResult:
    kp = lookup_all(frame, _LEGS_AND_TORSO, min_score)
    if kp is None:
        return FormResult.missing("Cannot detect legs and torso clearly")

    front, back = ("left", "right") if kp["left_knee"].x < kp["right_knee"].x else ("right", "left")
    front_knee_angle = angle_at(kp[f"{front}_hip"], kp[f"{front}_knee"], kp[f"{front}_ankle"])
    back_knee_angle = angle_at(kp[f"{back}_hip"], kp[f"{back}_knee"], kp[f"{back}_ankle"])

    # Symmetric in the two legs, so switching the lead leg cannot produce a rep
    metric = mean(front_knee_angle, back_knee_angle)
    result = FormResult(
        metric=metric,
        measurements={"front_knee_angle": front_knee_angle, "back_knee_angle": back_knee_angle},
    )

    if config.knee_over_ankle_tolerance is not None:
        scale = body_scale((kp["left_hip"], kp["left_ankle"]), (kp["right_hip"], kp["right_ankle"]))
        offset = abs(kp[f"{front}_knee"].x - kp[f"{front}_ankle"].x)
        result.measurements["front_knee_offset"] = offset / scale if scale > 0 else 0.0
        if offset > config.knee_over_ankle_tolerance * scale:
            result.fail("Keep front knee aligned with ankle", f"{front}_knee")

    _check_trunk_lean(
        result, kp, config, "Keep torso upright", ("left_shoulder", "right_shoulder"),
    )
    return result


FormEvaluator = Callable[[PoseFrame, ExerciseConfig, MotionState, float], FormResult]

FORM_EVALUATORS: dict[ExerciseType, FormEvaluator] = {
    ExerciseType.SQUAT: _evaluate_squat,
    ExerciseType.BICEP_CURL: _evaluate_bicep_curl,
    ExerciseType.PUSH_UP: _evaluate_push_up,
    ExerciseType.PULL_UP: _evaluate_pull_up,
    ExerciseType.FORWARD_LUNGE: _evaluate_forward_lunge,
}


def evaluate_form(
    frame: Optional[PoseFrame],
    config: ExerciseConfig,
    motion_state: MotionState = MotionState.STARTING,
    min_score: float = MIN_KEYPOINT_CONFIDENCE,
) -> FormResult:
    """Compute the counting metric and run every form check for *config*.

    Args:
        frame: Pose frame for this instant (None or empty = nothing detected).
        config: Active exercise configuration.
        motion_state: Current motion state; some checks only apply at the bottom.
        min_score: Keypoints below this confidence count as missing.

    Returns:
        FormResult with ``metric`` set unless required keypoints were missing.
    """
    if frame is None or frame.is_empty:
        return FormResult.missing("Cannot detect required landmarks")

    evaluator = FORM_EVALUATORS[config.exercise]
    result = evaluator(frame, config, motion_state, min_score)
    if not result.form_valid:
        logger.debug("%s form issues: %s", config.exercise.value, result.feedback)
    return result
