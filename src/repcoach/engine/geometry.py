"""
Pose frame models and planar geometry helpers.

Keypoints are image-space pixel coordinates with y increasing downward, as
delivered by the upstream 2-D pose estimator (one frame per video frame).
"""

from typing import Iterable, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Pose frame models
# ============================================================================

class Keypoint(BaseModel):
    """A single named 2-D joint estimate."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Joint name, e.g. 'left_knee'")
    x: float
    y: float
    score: float = Field(default=1.0, ge=0.0, le=1.0, description="Detection confidence")


class PoseFrame(BaseModel):
    """All keypoints detected for one instant. Never mutated by the engine."""
    model_config = ConfigDict(frozen=True)

    keypoints: Tuple[Keypoint, ...] = Field(default_factory=tuple)
    score: float = Field(default=1.0, ge=0.0, le=1.0, description="Overall pose confidence")

    @classmethod
    def from_points(cls, points: dict[str, tuple], score: float = 1.0) -> "PoseFrame":
        """Build a frame from ``{name: (x, y)}`` or ``{name: (x, y, score)}``."""
        keypoints = []
        for name, values in points.items():
            x, y = values[0], values[1]
            kp_score = values[2] if len(values) > 2 else 1.0
            keypoints.append(Keypoint(name=name, x=x, y=y, score=kp_score))
        return cls(keypoints=tuple(keypoints), score=score)

    @property
    def is_empty(self) -> bool:
        return not self.keypoints


# ============================================================================
# Lookup
# ============================================================================

def lookup(frame: Optional[PoseFrame], name: str, min_score: float = 0.0) -> Optional[Keypoint]:
    """Return the keypoint called *name*, or None if absent or below *min_score*.

    None means "cannot evaluate this frame"; callers must not substitute a default.
    """
    if frame is None:
        return None
    for kp in frame.keypoints:
        if kp.name == name:
            return kp if kp.score >= min_score else None
    return None


def lookup_all(
    frame: Optional[PoseFrame],
    names: Iterable[str],
    min_score: float = 0.0,
) -> Optional[dict[str, Keypoint]]:
    """Look up every name; None if any one of them is unusable."""
    found = {}
    for name in names:
        kp = lookup(frame, name, min_score)
        if kp is None:
            return None
        found[name] = kp
    return found


# ============================================================================
# Angles and scale
# ============================================================================

def _xy(p) -> np.ndarray:
    if isinstance(p, Keypoint):
        return np.array([p.x, p.y], dtype=np.float64)
    return np.array([p[0], p[1]], dtype=np.float64)


def angle_at(a, b, c) -> float:
    """Angle in degrees at vertex b formed by rays b->a and b->c.

    Uses cos(theta) = (ba . bc) / (|ba| |bc|), so the result is in [0, 180]
    regardless of winding direction.

    Args:
        a, b, c: Keypoints or (x, y) pairs.

    Returns:
        float: Angle in degrees; 0.0 if either ray has zero length.
    """
    ba = _xy(a) - _xy(b)
    bc = _xy(c) - _xy(b)

    magnitude_ba = np.linalg.norm(ba)
    magnitude_bc = np.linalg.norm(bc)
    if magnitude_ba < 1e-6 or magnitude_bc < 1e-6:
        return 0.0

    cos_angle = np.clip(np.dot(ba, bc) / (magnitude_ba * magnitude_bc), -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def lean_from_vertical(top, bottom) -> float:
    """Angle between the segment bottom->top and straight up (0 = upright)."""
    b = _xy(bottom)
    return angle_at(top, b, (b[0], b[1] - 100.0))


def deviation_from_down(anchor, end) -> float:
    """Angle between the segment anchor->end and straight down (0 = hanging)."""
    a = _xy(anchor)
    return angle_at(end, a, (a[0], a[1] + 100.0))


def mean(*values: float) -> float:
    return float(sum(values) / len(values))


def body_scale(*segments: tuple) -> float:
    """Mean vertical span of the given (upper, lower) keypoint pairs.

    Distance tolerances are multiplied by this so thresholds hold at any
    camera distance. Returns 0.0 for degenerate input.
    """
    spans = [abs(lower.y - upper.y) for upper, lower in segments]
    return float(sum(spans) / len(spans)) if spans else 0.0
