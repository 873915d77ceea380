"""
FastAPI entry point for the repcoach backend.

The server keeps no session state: clients start a session, then send the
returned SessionState back with every pose frame and replace it with the
response.

Endpoints:
    GET  /health
    GET  /api/exercises
    POST /api/session/start
    POST /api/session/evaluate
    POST /api/session/summary

Run:
    uvicorn repcoach.pipelines.main:app --host 0.0.0.0 --port 8000 --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from repcoach.config import LOG_LEVEL, get_session_overrides
from repcoach.engine import (
    EXERCISES,
    ExerciseConfig,
    ExerciseType,
    PoseFrame,
    SessionOverrides,
    SessionState,
    evaluate,
    get_exercise_config,
    init_session_state,
)
from repcoach.pipelines.utils import SessionSummary, summarize_session

logger = logging.getLogger("repcoach")
logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")


# ============================================================================
# Pydantic request / response models
# ============================================================================

class ExerciseInfo(BaseModel):
    id: str
    name: str
    target_reps: int
    target_sets: int
    rest_seconds: float
    form_instructions: list[str]
    muscles_targeted: list[str]
    primary_landmarks: list[str]


class StartRequest(BaseModel):
    exercise: str = Field(..., description="Exercise id, e.g. 'squat', or 'none'")
    overrides: Optional[SessionOverrides] = None


class StartResponse(BaseModel):
    state: SessionState
    exercise: Optional[ExerciseInfo] = None


class EvaluateRequest(BaseModel):
    state: SessionState
    frame: Optional[PoseFrame] = Field(default=None, description="None when no pose was detected")
    overrides: Optional[SessionOverrides] = None
    timestamp: Optional[float] = Field(default=None, description="Frame time in seconds (default: server time)")


class SummaryRequest(BaseModel):
    state: SessionState
    overrides: Optional[SessionOverrides] = None


class ErrorResponse(BaseModel):
    error_code: str
    message: str


def _exercise_info(config: ExerciseConfig) -> ExerciseInfo:
    return ExerciseInfo(
        id=config.exercise.value,
        name=config.name,
        target_reps=config.target_reps,
        target_sets=config.target_sets,
        rest_seconds=config.rest_seconds,
        form_instructions=list(config.form_instructions),
        muscles_targeted=list(config.muscles_targeted),
        primary_landmarks=list(config.primary_landmarks),
    )


def _session_config(exercise, overrides: Optional[SessionOverrides]) -> ExerciseConfig:
    return get_exercise_config(exercise, overrides, session_defaults=get_session_overrides())


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error_code": code, "message": message})


# ============================================================================
# App lifecycle: load session defaults on startup
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting repcoach backend …")
    overrides = get_session_overrides()
    logger.info(
        "%d exercises available, %d with session overrides.",
        len(EXERCISES), len(overrides),
    )
    yield
    logger.info("Shutting down.")


app = FastAPI(
    title="repcoach API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health-check and catalogue
# ============================================================================

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/exercises", response_model=list[ExerciseInfo])
def list_exercises():
    return [_exercise_info(_session_config(t, None)) for t in EXERCISES]


# ============================================================================
# Session endpoints
# ============================================================================

@app.post(
    "/api/session/start",
    response_model=StartResponse,
    responses={400: {"model": ErrorResponse}},
)
def start_session(request: StartRequest):
    """Create a fresh SessionState for the selected exercise."""
    try:
        state = init_session_state(request.exercise)
    except ValueError as exc:
        return _error(400, "UNKNOWN_EXERCISE", str(exc))

    if state.exercise is ExerciseType.NONE:
        return StartResponse(state=state)

    config = _session_config(state.exercise, request.overrides)
    logger.info("Session started: %s (%d x %d)", config.name, config.target_sets, config.target_reps)
    return StartResponse(state=state, exercise=_exercise_info(config))


@app.post("/api/session/evaluate", response_model=SessionState)
def evaluate_frame(request: EvaluateRequest):
    """Run one pose frame through the engine and return the next state."""
    state = request.state
    if state.exercise is ExerciseType.NONE:
        return state

    config = _session_config(state.exercise, request.overrides)
    return evaluate(state, request.frame, config, now=request.timestamp)


@app.post(
    "/api/session/summary",
    response_model=SessionSummary,
    responses={400: {"model": ErrorResponse}},
)
def session_summary(request: SummaryRequest):
    """Progress, recurring form issues and tips for the session so far."""
    if request.state.exercise is ExerciseType.NONE:
        return _error(400, "NO_EXERCISE", "No exercise selected for this session.")

    config = _session_config(request.state.exercise, request.overrides)
    return summarize_session(request.state, config)
