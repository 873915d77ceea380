"""
Exercise rule table.

Maps each supported exercise to its static configuration: session targets,
the four-threshold hysteresis band on the counting metric, the form
tolerances that apply, and coaching metadata (instructions, muscles,
primary landmarks).

All angles are in degrees. Distance tolerances are fractions of the
per-frame body scale, never pixels.
"""

from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExerciseType(str, Enum):
    SQUAT = "squat"
    BICEP_CURL = "bicep_curl"
    PUSH_UP = "push_up"
    PULL_UP = "pull_up"
    FORWARD_LUNGE = "forward_lunge"
    NONE = "none"


class HysteresisBand(BaseModel):
    """Entry/exit thresholds on the counting metric.

    Low metric = flexed (DOWN), high metric = extended (UP). The exit
    thresholds must sit strictly between the two entry thresholds so that
    a reading hovering around one threshold cannot flip the state back and
    forth.
    """
    model_config = ConfigDict(frozen=True)

    entry_down: float = Field(description="Metric at or below this enters DOWN")
    exit_down: float = Field(description="Metric must rise back through this before UP is armed")
    entry_up: float = Field(description="Metric at or above this completes the rep")
    exit_up: float = Field(description="Metric must fall back through this before DOWN is armed")

    @model_validator(mode="after")
    def _check_ordering(self) -> "HysteresisBand":
        if not self.entry_down < self.exit_down < self.entry_up:
            raise ValueError(
                f"exit_down ({self.exit_down}) must lie strictly between "
                f"entry_down ({self.entry_down}) and entry_up ({self.entry_up})"
            )
        if not self.entry_down < self.exit_up < self.entry_up:
            raise ValueError(
                f"exit_up ({self.exit_up}) must lie strictly between "
                f"entry_down ({self.entry_down}) and entry_up ({self.entry_up})"
            )
        return self


class SessionOverrides(BaseModel):
    """User-adjustable session targets. Form thresholds are not adjustable."""
    model_config = ConfigDict(extra="forbid")

    target_reps: Optional[int] = Field(default=None, gt=0)
    target_sets: Optional[int] = Field(default=None, gt=0)
    rest_seconds: Optional[float] = Field(default=None, ge=0)

    def as_update(self) -> dict:
        return self.model_dump(exclude_none=True)


class ExerciseConfig(BaseModel):
    """Static configuration for one exercise."""
    model_config = ConfigDict(frozen=True)

    exercise: ExerciseType
    name: str
    target_reps: int = Field(gt=0)
    target_sets: int = Field(gt=0)
    rest_seconds: float = Field(ge=0)
    band: HysteresisBand

    # Form tolerances (None disables the check)
    max_trunk_lean: Optional[float] = None
    max_upper_arm_deviation: Optional[float] = None
    valgus_tolerance: Optional[float] = None
    chest_lean_tolerance: Optional[float] = None
    knee_over_ankle_tolerance: Optional[float] = None
    body_line_range: Optional[Tuple[float, float]] = None
    chin_above_wrist_required: bool = False

    # Coaching metadata
    form_instructions: Tuple[str, ...] = ()
    muscles_targeted: Tuple[str, ...] = ()
    primary_landmarks: Tuple[str, ...] = ()

    def with_overrides(
        self,
        overrides: Optional[Union[SessionOverrides, dict]] = None,
        **kwargs,
    ) -> "ExerciseConfig":
        """Return a copy with target reps/sets/rest replaced.

        Accepts a ``SessionOverrides``, a plain dict, or keyword arguments.
        ``None`` values leave the default untouched.
        """
        if isinstance(overrides, dict):
            overrides = SessionOverrides(**overrides)
        update = overrides.as_update() if overrides is not None else {}
        update.update(SessionOverrides(**kwargs).as_update())
        if not update:
            return self
        return ExerciseConfig.model_validate({**self.model_dump(), **update})


_LEGS_AND_TORSO = (
    "left_hip", "left_knee", "left_ankle", "left_shoulder",
    "right_hip", "right_knee", "right_ankle", "right_shoulder",
)

EXERCISES: dict[ExerciseType, ExerciseConfig] = {
    ExerciseType.SQUAT: ExerciseConfig(
        exercise=ExerciseType.SQUAT,
        name="Squat",
        target_reps=15,
        target_sets=3,
        rest_seconds=10,
        band=HysteresisBand(entry_down=100, exit_down=120, entry_up=160, exit_up=140),
        max_trunk_lean=45,
        valgus_tolerance=0.05,
        chest_lean_tolerance=0.10,
        form_instructions=(
            "Keep your back straight, chest up",
            "Lower until thighs are at least parallel to the ground (knee angle <= 100°)",
            "Ensure knees track over toes, not caving inward",
            "Maintain weight primarily in heels/midfoot",
        ),
        muscles_targeted=("Quadriceps", "Hamstrings", "Glutes", "Core"),
        primary_landmarks=_LEGS_AND_TORSO,
    ),
    ExerciseType.BICEP_CURL: ExerciseConfig(
        exercise=ExerciseType.BICEP_CURL,
        name="Bicep Curl",
        target_reps=12,
        target_sets=3,
        rest_seconds=10,
        band=HysteresisBand(entry_down=70, exit_down=90, entry_up=140, exit_up=120),
        max_trunk_lean=20,
        max_upper_arm_deviation=25,
        form_instructions=(
            "Keep elbows tucked close to your sides",
            "Minimize upper arm movement; isolate the bicep",
            "Curl weight up towards shoulder (elbow angle ~55°)",
            "Lower weight slowly until arms are nearly straight (elbow angle ~155°)",
        ),
        muscles_targeted=("Biceps", "Forearms"),
        primary_landmarks=(
            "left_shoulder", "left_elbow", "left_wrist",
            "right_shoulder", "right_elbow", "right_wrist",
        ),
    ),
    ExerciseType.PUSH_UP: ExerciseConfig(
        exercise=ExerciseType.PUSH_UP,
        name="Push Up",
        target_reps=15,
        target_sets=3,
        rest_seconds=10,
        band=HysteresisBand(entry_down=100, exit_down=120, entry_up=150, exit_up=130),
        body_line_range=(150, 190),
        form_instructions=(
            "Place hands slightly wider than shoulder-width",
            "Keep body in a straight line from head to heels",
            "Lower chest towards the floor (elbow angle ~95°)",
            "Push back up until arms are extended (elbow angle ~155°)",
        ),
        muscles_targeted=("Chest", "Shoulders", "Triceps", "Core"),
        primary_landmarks=(
            "left_shoulder", "left_elbow", "left_wrist",
            "right_shoulder", "right_elbow", "right_wrist",
            "left_hip", "right_hip", "left_knee", "right_knee",
        ),
    ),
    ExerciseType.PULL_UP: ExerciseConfig(
        exercise=ExerciseType.PULL_UP,
        name="Pull Up",
        target_reps=8,
        target_sets=3,
        rest_seconds=30,
        band=HysteresisBand(entry_down=90, exit_down=110, entry_up=150, exit_up=130),
        chin_above_wrist_required=True,
        form_instructions=(
            "Grip bar slightly wider than shoulder-width, palms facing away",
            "Hang with arms fully extended",
            "Pull body up until chin is above the bar (elbow angle ~80°)",
            "Lower body slowly until arms are fully extended (elbow angle ~160°)",
            "Avoid excessive swinging or kipping",
        ),
        muscles_targeted=("Back (Lats)", "Biceps", "Shoulders", "Core"),
        primary_landmarks=(
            "left_shoulder", "left_elbow", "left_wrist",
            "right_shoulder", "right_elbow", "right_wrist", "nose",
        ),
    ),
    ExerciseType.FORWARD_LUNGE: ExerciseConfig(
        exercise=ExerciseType.FORWARD_LUNGE,
        name="Forward Lunge",
        target_reps=12,
        target_sets=3,
        rest_seconds=10,
        band=HysteresisBand(entry_down=105, exit_down=125, entry_up=160, exit_up=145),
        max_trunk_lean=30,
        knee_over_ankle_tolerance=0.15,
        form_instructions=(
            "Step forward into a lunge position",
            "Lower until back knee nearly touches ground",
            "Keep front knee aligned over ankle",
            "Maintain upright torso position",
            "Push through front heel to return to start",
            "Alternate legs with each rep",
        ),
        muscles_targeted=("Quadriceps", "Hamstrings", "Glutes", "Core", "Hip Flexors"),
        primary_landmarks=_LEGS_AND_TORSO,
    ),
}

# Accept a few spellings used by clients ("bicepCurl", "Bicep Curl", ...)
_ALIASES: dict[str, ExerciseType] = {}
for _type, _cfg in EXERCISES.items():
    _ALIASES[_type.value] = _type
    _ALIASES[_type.value.replace("_", "")] = _type
    _ALIASES[_cfg.name.lower()] = _type
    _ALIASES[_cfg.name.lower().replace(" ", "")] = _type
_ALIASES["none"] = ExerciseType.NONE


def parse_exercise(exercise: Union[ExerciseType, str]) -> ExerciseType:
    """Resolve an exercise id, display name or camelCase id to an ExerciseType.

    Raises:
        ValueError: If the exercise is not known.
    """
    if isinstance(exercise, ExerciseType):
        return exercise
    key = str(exercise).strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    key = key.replace("-", "_").replace(" ", "_")
    if key in _ALIASES:
        return _ALIASES[key]
    raise ValueError(
        f"Exercise '{exercise}' not found. Valid ids: "
        + ", ".join(t.value for t in ExerciseType)
    )


def get_exercise_config(
    exercise: Union[ExerciseType, str],
    overrides: Optional[Union[SessionOverrides, dict]] = None,
    session_defaults: Optional[dict[str, dict]] = None,
) -> ExerciseConfig:
    """Get the configuration for an exercise with session targets applied.

    Precedence: explicit *overrides* > *session_defaults* (normally the YAML
    file, see ``repcoach.config.get_session_overrides``) > built-in table.

    Raises:
        ValueError: If the exercise is unknown or is ``none``.
    """
    exercise_type = parse_exercise(exercise)
    if exercise_type is ExerciseType.NONE:
        raise ValueError("Exercise 'none' has no configuration")

    config = EXERCISES[exercise_type]
    if session_defaults and exercise_type.value in session_defaults:
        config = config.with_overrides(session_defaults[exercise_type.value])
    if overrides is not None:
        config = config.with_overrides(overrides)
    return config


def get_all_exercises() -> list[tuple[str, str]]:
    """Get list of all exercise ids and display names."""
    return [(t.value, cfg.name) for t, cfg in EXERCISES.items()]
