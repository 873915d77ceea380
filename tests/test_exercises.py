"""Tests for the exercise rule table and session overrides."""

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from repcoach.engine.exercises import (
    EXERCISES,
    ExerciseType,
    HysteresisBand,
    SessionOverrides,
    get_all_exercises,
    get_exercise_config,
    parse_exercise,
)


# ============================================================================
# Test: Hysteresis band
# ============================================================================

class TestHysteresisBand:

    def test_valid_band(self):
        band = HysteresisBand(entry_down=100, exit_down=120, entry_up=160, exit_up=140)
        assert band.entry_down < band.exit_down < band.entry_up

    def test_exit_down_outside_band_rejected(self):
        with pytest.raises(ValidationError, match="exit_down"):
            HysteresisBand(entry_down=100, exit_down=170, entry_up=160, exit_up=140)

    def test_exit_up_outside_band_rejected(self):
        with pytest.raises(ValidationError, match="exit_up"):
            HysteresisBand(entry_down=100, exit_down=120, entry_up=160, exit_up=90)

    def test_single_threshold_rejected(self):
        with pytest.raises(ValidationError):
            HysteresisBand(entry_down=120, exit_down=120, entry_up=120, exit_up=120)

    @pytest.mark.parametrize("exercise", list(EXERCISES))
    def test_every_table_band_is_ordered(self, exercise):
        band = EXERCISES[exercise].band
        assert band.entry_down < band.exit_down < band.entry_up
        assert band.entry_down < band.exit_up < band.entry_up


# ============================================================================
# Test: Rule table
# ============================================================================

class TestRuleTable:

    def test_five_exercises(self):
        assert set(EXERCISES) == {
            ExerciseType.SQUAT,
            ExerciseType.BICEP_CURL,
            ExerciseType.PUSH_UP,
            ExerciseType.PULL_UP,
            ExerciseType.FORWARD_LUNGE,
        }

    def test_push_up_body_line_range(self):
        assert EXERCISES[ExerciseType.PUSH_UP].body_line_range == (150, 190)

    def test_pull_up_requires_chin(self):
        assert EXERCISES[ExerciseType.PULL_UP].chin_above_wrist_required
        assert not EXERCISES[ExerciseType.SQUAT].chin_above_wrist_required

    def test_get_all_exercises(self):
        ids = dict(get_all_exercises())
        assert ids["squat"] == "Squat"
        assert ids["forward_lunge"] == "Forward Lunge"
        assert "none" not in ids

    def test_metadata_present(self):
        for config in EXERCISES.values():
            assert config.form_instructions
            assert config.muscles_targeted
            assert config.primary_landmarks


# ============================================================================
# Test: Exercise lookup
# ============================================================================

class TestParseExercise:

    @pytest.mark.parametrize("name,expected", [
        ("squat", ExerciseType.SQUAT),
        ("bicep_curl", ExerciseType.BICEP_CURL),
        ("bicepCurl", ExerciseType.BICEP_CURL),
        ("Bicep Curl", ExerciseType.BICEP_CURL),
        ("push-up", ExerciseType.PUSH_UP),
        ("PullUp", ExerciseType.PULL_UP),
        ("forward_lunge", ExerciseType.FORWARD_LUNGE),
        ("none", ExerciseType.NONE),
        (ExerciseType.SQUAT, ExerciseType.SQUAT),
    ])
    def test_aliases(self, name, expected):
        assert parse_exercise(name) is expected

    def test_unknown_exercise(self):
        with pytest.raises(ValueError, match="not found"):
            parse_exercise("deadlift")

    def test_none_has_no_config(self):
        with pytest.raises(ValueError, match="no configuration"):
            get_exercise_config("none")


# ============================================================================
# Test: Session overrides
# ============================================================================

class TestOverrides:

    def test_defaults_without_overrides(self):
        assert get_exercise_config("squat") is EXERCISES[ExerciseType.SQUAT]

    def test_explicit_overrides(self):
        config = get_exercise_config("squat", SessionOverrides(target_reps=5, rest_seconds=0))
        assert config.target_reps == 5
        assert config.rest_seconds == 0
        assert config.target_sets == EXERCISES[ExerciseType.SQUAT].target_sets
        # Rule table untouched
        assert EXERCISES[ExerciseType.SQUAT].target_reps == 15

    def test_dict_overrides(self):
        config = get_exercise_config("pull_up", {"target_sets": 5})
        assert config.target_sets == 5

    def test_overrides_take_precedence_over_session_defaults(self):
        defaults = {"bicep_curl": {"target_reps": 8, "target_sets": 4}}
        config = get_exercise_config("bicep_curl", {"target_reps": 6}, session_defaults=defaults)
        assert config.target_reps == 6
        assert config.target_sets == 4

    def test_band_survives_overrides(self):
        config = EXERCISES[ExerciseType.PUSH_UP].with_overrides(target_reps=3)
        assert config.band == EXERCISES[ExerciseType.PUSH_UP].band

    @pytest.mark.parametrize("bad", [
        {"target_reps": 0},
        {"target_sets": -1},
        {"rest_seconds": -5},
    ])
    def test_invalid_overrides_rejected(self, bad):
        with pytest.raises(ValidationError):
            SessionOverrides(**bad)

    def test_form_thresholds_not_overridable(self):
        with pytest.raises(ValidationError, match="max_trunk_lean"):
            EXERCISES[ExerciseType.SQUAT].with_overrides(max_trunk_lean=90)
