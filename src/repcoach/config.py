"""
Configuration constants for the repcoach engine and HTTP backend.

Loads environment variables from the project's .env file and exposes the
per-session defaults file (YAML) for the user-adjustable exercise targets.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(_ENV_PATH)

# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------
# Keypoints scored below this are treated as missing.
MIN_KEYPOINT_CONFIDENCE: float = float(os.environ.get("REPCOACH_MIN_CONFIDENCE", "0.3"))

# Minimum seconds between two counted reps. Never below half a second.
MIN_REP_COOLDOWN_SECONDS: float = 0.5
REP_COOLDOWN_SECONDS: float = max(
    MIN_REP_COOLDOWN_SECONDS,
    float(os.environ.get("REPCOACH_REP_COOLDOWN_S", str(MIN_REP_COOLDOWN_SECONDS))),
)

LOG_LEVEL: str = os.environ.get("REPCOACH_LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# Per-session defaults (target reps / sets / rest only)
# ---------------------------------------------------------------------------
SESSION_OVERRIDES_PATH = Path(
    os.environ.get(
        "REPCOACH_SESSION_OVERRIDES",
        str(PROJECT_ROOT / "config" / "session_overrides.yaml"),
    )
)

# Keys a session file or a user may change. Form thresholds are not listed.
OVERRIDABLE_FIELDS: tuple[str, ...] = ("target_reps", "target_sets", "rest_seconds")


def load_session_overrides(config_path: Optional[Path] = None) -> dict[str, dict]:
    """Load per-exercise target overrides from YAML.

    The file maps exercise ids (``squat``, ``bicep_curl`` ...) to a dict of
    ``target_reps`` / ``target_sets`` / ``rest_seconds``. Any other key is
    dropped with a warning.

    Args:
        config_path: Override file location (default: ``SESSION_OVERRIDES_PATH``).

    Returns:
        Dict of exercise id -> dict of allowed overrides. Empty when the file
        does not exist.
    """
    path = Path(config_path) if config_path is not None else SESSION_OVERRIDES_PATH
    if not path.exists():
        logger.info("No session overrides file at %s; using built-in targets.", path)
        return {}

    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    exercises = raw.get("exercises", {}) or {}
    overrides: dict[str, dict] = {}
    for exercise_id, values in exercises.items():
        allowed = {}
        for key, value in (values or {}).items():
            if key in OVERRIDABLE_FIELDS:
                allowed[key] = value
            else:
                logger.warning(
                    "Ignoring '%s' for '%s' in %s: only %s can be overridden.",
                    key, exercise_id, path, ", ".join(OVERRIDABLE_FIELDS),
                )
        overrides[str(exercise_id)] = allowed
    return overrides


_SESSION_OVERRIDES: Optional[dict[str, dict]] = None


def get_session_overrides() -> dict[str, dict]:
    """Lazy-load and cache the YAML session overrides."""
    global _SESSION_OVERRIDES
    if _SESSION_OVERRIDES is None:
        _SESSION_OVERRIDES = load_session_overrides()
    return _SESSION_OVERRIDES
