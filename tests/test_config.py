"""Tests for YAML session overrides and environment settings."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from repcoach import config as repcoach_config
from repcoach.config import (
    MIN_REP_COOLDOWN_SECONDS,
    REP_COOLDOWN_SECONDS,
    load_session_overrides,
)
from repcoach.engine.exercises import get_exercise_config


class TestSessionOverridesFile:

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_session_overrides(tmp_path / "nope.yaml") == {}

    def test_loads_allowed_keys(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text(
            "exercises:\n"
            "  squat:\n"
            "    target_reps: 10\n"
            "    rest_seconds: 5\n"
        )
        assert load_session_overrides(path) == {"squat": {"target_reps": 10, "rest_seconds": 5}}

    def test_drops_form_thresholds(self, tmp_path, caplog):
        path = tmp_path / "overrides.yaml"
        path.write_text(
            "exercises:\n"
            "  squat:\n"
            "    target_sets: 2\n"
            "    max_trunk_lean: 80\n"
        )
        overrides = load_session_overrides(path)
        assert overrides == {"squat": {"target_sets": 2}}
        assert "max_trunk_lean" in caplog.text

    def test_empty_file(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("")
        assert load_session_overrides(path) == {}

    def test_shipped_file_matches_builtin_targets(self):
        shipped = load_session_overrides(PROJECT_ROOT / "config" / "session_overrides.yaml")
        assert set(shipped) == {"squat", "bicep_curl", "push_up", "pull_up", "forward_lunge"}
        for exercise_id, values in shipped.items():
            config = get_exercise_config(exercise_id, session_defaults=shipped)
            assert config.target_reps == values["target_reps"]

    def test_cached_loader(self, tmp_path, monkeypatch):
        path = tmp_path / "overrides.yaml"
        path.write_text("exercises:\n  pull_up:\n    target_reps: 4\n")
        monkeypatch.setattr(repcoach_config, "SESSION_OVERRIDES_PATH", path)
        monkeypatch.setattr(repcoach_config, "_SESSION_OVERRIDES", None)

        first = repcoach_config.get_session_overrides()
        path.write_text("exercises:\n  pull_up:\n    target_reps: 9\n")
        assert repcoach_config.get_session_overrides() is first
        assert first["pull_up"]["target_reps"] == 4


class TestEngineSettings:

    def test_cooldown_floor(self):
        assert MIN_REP_COOLDOWN_SECONDS == pytest.approx(0.5)
        assert REP_COOLDOWN_SECONDS >= MIN_REP_COOLDOWN_SECONDS
