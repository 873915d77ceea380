"""Tests for per-exercise form evaluation."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from repcoach.engine import ExerciseType, MotionState, PoseFrame, evaluate_form, get_exercise_config
from pose_factory import bicep_frame, lunge_frame, pull_up_frame, push_up_frame, squat_frame

SQUAT = get_exercise_config(ExerciseType.SQUAT)
BICEP = get_exercise_config(ExerciseType.BICEP_CURL)
PUSH_UP = get_exercise_config(ExerciseType.PUSH_UP)
PULL_UP = get_exercise_config(ExerciseType.PULL_UP)
LUNGE = get_exercise_config(ExerciseType.FORWARD_LUNGE)


# ============================================================================
# Test: Missing data
# ============================================================================

class TestMissingKeypoints:
    """Incomplete frames are never reported as correct form."""

    @pytest.mark.parametrize("frame", [None, PoseFrame()])
    def test_no_pose(self, frame):
        result = evaluate_form(frame, SQUAT)
        assert not result.form_valid
        assert result.metric is None
        assert result.feedback == ["Cannot detect required landmarks"]

    def test_missing_ankle(self):
        result = evaluate_form(squat_frame(170, missing=("left_ankle",)), SQUAT)
        assert not result.form_valid
        assert result.metric is None
        assert result.feedback == ["Cannot detect legs and torso clearly"]

    def test_low_confidence_counts_as_missing(self):
        frame = squat_frame(170, low_confidence=("right_knee",))
        assert evaluate_form(frame, SQUAT).metric is None
        assert evaluate_form(frame, SQUAT, min_score=0.01).metric is not None

    @pytest.mark.parametrize("config,frame,message", [
        (BICEP, bicep_frame(160, missing=("left_hip",)), "Cannot detect arms and torso clearly"),
        (PUSH_UP, push_up_frame(160, missing=("right_knee",)), "Cannot detect all required landmarks"),
        (PULL_UP, pull_up_frame(160, missing=("nose",)), "Cannot detect arms and head clearly"),
        (LUNGE, lunge_frame(170, 170, missing=("left_shoulder",)), "Cannot detect legs and torso clearly"),
    ])
    def test_messages_per_exercise(self, config, frame, message):
        result = evaluate_form(frame, config)
        assert not result.form_valid
        assert result.feedback == [message]
        assert result.flagged_regions == []


# ============================================================================
# Test: Squat
# ============================================================================

class TestSquatForm:

    @pytest.mark.parametrize("angle", [170, 130, 95])
    def test_good_form(self, angle):
        result = evaluate_form(squat_frame(angle), SQUAT)
        assert result.form_valid
        assert result.metric == pytest.approx(angle, abs=1e-6)
        assert result.feedback == []

    def test_trunk_lean(self):
        result = evaluate_form(squat_frame(170, trunk_lean=60), SQUAT)
        assert not result.form_valid
        assert result.feedback[0].startswith("Keep your back straight. Angle: 60°")
        assert {"left_hip", "right_hip", "left_shoulder", "right_shoulder"} <= set(result.flagged_regions)

    def test_valgus(self):
        result = evaluate_form(squat_frame(170, valgus=True), SQUAT)
        assert not result.form_valid
        assert "Left knee caving in. Push it outwards." in result.feedback
        assert "left_knee" in result.flagged_regions
        assert "right_knee" not in result.flagged_regions

    def test_chest_lean_at_bottom(self):
        result = evaluate_form(squat_frame(90, trunk_lean=-30), SQUAT)
        assert not result.form_valid
        assert result.feedback == ["Keep chest up, avoid excessive forward lean."]

    def test_chest_lean_ignored_near_top(self):
        result = evaluate_form(squat_frame(170, trunk_lean=-30), SQUAT, MotionState.UP)
        assert result.form_valid

    def test_chest_lean_checked_in_down_state(self):
        result = evaluate_form(squat_frame(130, trunk_lean=-30), SQUAT, MotionState.DOWN)
        assert not result.form_valid


# ============================================================================
# Test: Bicep curl
# ============================================================================

class TestBicepCurlForm:

    def test_good_form(self):
        result = evaluate_form(bicep_frame(50), BICEP)
        assert result.form_valid
        assert result.metric == pytest.approx(50, abs=1e-6)
        assert result.measurements["upper_arm_deviation"] == pytest.approx(0, abs=1e-6)

    def test_upper_arm_swing(self):
        result = evaluate_form(bicep_frame(90, arm_swing=40), BICEP)
        assert not result.form_valid
        assert result.feedback[0].startswith("Keep upper arms still. Movement: 40°")
        assert "left_elbow" in result.flagged_regions
        # Elbow angle is unaffected by the swing
        assert result.metric == pytest.approx(90, abs=1e-6)

    def test_trunk_lean(self):
        result = evaluate_form(bicep_frame(160, trunk_lean=30), BICEP)
        assert not result.form_valid
        assert any(msg.startswith("Keep your back straight") for msg in result.feedback)


# ============================================================================
# Test: Push-up
# ============================================================================

class TestPushUpForm:

    def test_straight_body(self):
        result = evaluate_form(push_up_frame(95), PUSH_UP)
        assert result.form_valid
        assert result.metric == pytest.approx(95, abs=1e-6)
        assert result.measurements["body_line"] == pytest.approx(175, abs=1e-6)

    def test_sagging_hips(self):
        result = evaluate_form(push_up_frame(90, body_line=120), PUSH_UP)
        assert not result.form_valid
        assert result.feedback == ["Keep your body in a straight line. Angle: 120° (Range: 150-190°)"]
        assert set(result.flagged_regions) == {"left_hip", "right_hip"}
        # Metric is still reported so the state machine can pause
        assert result.metric == pytest.approx(90, abs=1e-6)


# ============================================================================
# Test: Pull-up
# ============================================================================

class TestPullUpForm:

    def test_chin_above_at_top(self):
        result = evaluate_form(pull_up_frame(70, chin_above=True), PULL_UP)
        assert result.form_valid
        assert result.measurements["chin_clearance"] == pytest.approx(20, abs=1e-6)

    def test_chin_below_at_top(self):
        result = evaluate_form(pull_up_frame(70, chin_above=False), PULL_UP)
        assert not result.form_valid
        assert result.feedback == ["Pull higher - Chin needs to clear the bar (hands)"]
        assert "nose" in result.flagged_regions

    def test_chin_not_checked_when_hanging(self):
        assert evaluate_form(pull_up_frame(170, chin_above=False), PULL_UP).form_valid

    def test_chin_not_checked_on_descent(self):
        result = evaluate_form(pull_up_frame(130, chin_above=False), PULL_UP, MotionState.DOWN)
        assert result.form_valid

    def test_chin_check_disabled(self):
        config = PULL_UP.model_copy(update={"chin_above_wrist_required": False})
        assert evaluate_form(pull_up_frame(70, chin_above=False), config).form_valid


# ============================================================================
# Test: Forward lunge
# ============================================================================

class TestLungeForm:

    def test_metric_is_mean_of_both_knees(self):
        result = evaluate_form(lunge_frame(100, 90), LUNGE)
        assert result.form_valid
        assert result.metric == pytest.approx(95, abs=1e-6)
        assert result.measurements["front_knee_angle"] == pytest.approx(100, abs=1e-6)
        assert result.measurements["back_knee_angle"] == pytest.approx(90, abs=1e-6)

    def test_front_leg_is_lower_x(self):
        result = evaluate_form(lunge_frame(100, 90, front="right"), LUNGE)
        assert result.measurements["front_knee_angle"] == pytest.approx(100, abs=1e-6)

    def test_front_knee_over_toes(self):
        result = evaluate_form(lunge_frame(170, 170, knee_drift=60), LUNGE)
        assert not result.form_valid
        assert result.feedback == ["Keep front knee aligned with ankle"]
        assert result.flagged_regions == ["left_knee"]

    def test_trunk_lean(self):
        result = evaluate_form(lunge_frame(170, 170, trunk_lean=45), LUNGE)
        assert not result.form_valid
        assert result.feedback == ["Keep torso upright"]
        assert result.flagged_regions == ["left_shoulder", "right_shoulder"]
        assert result.measurements["trunk_lean"] == pytest.approx(45, abs=1e-6)
