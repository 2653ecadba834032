"""
Joint angles from 2D landmarks.

Angles use the directional-segment convention: the angle between a->b and b->c.
A straight limb (a, b, c colinear with b between) is 0 deg; a right-angle knee is
90 deg. All rep thresholds in this package are calibrated against this.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

from .pose import LandmarkIdx

Point = tuple[float, float]

# Below this vector length the angle is treated as undefined.
_MIN_SEGMENT_LEN = 1e-9


def _get_point(
    landmarks: Optional[Sequence[Point]],
    idx: int,
) -> Optional[Point]:
    if not landmarks or idx >= len(landmarks):
        return None
    return landmarks[idx]


def compute_angle(
    a: Optional[Point],
    b: Optional[Point],
    c: Optional[Point],
) -> Optional[float]:
    """Angle in degrees between segments a->b and b->c, or None if undefined."""
    if a is None or b is None or c is None:
        return None
    coords = (a[0], a[1], b[0], b[1], c[0], c[1])
    if not all(math.isfinite(v) for v in coords):
        return None
    ab = (b[0] - a[0], b[1] - a[1])
    bc = (c[0] - b[0], c[1] - b[1])
    norm_ab = math.hypot(ab[0], ab[1])
    norm_bc = math.hypot(bc[0], bc[1])
    if norm_ab < _MIN_SEGMENT_LEN or norm_bc < _MIN_SEGMENT_LEN:
        return None
    cos_val = (ab[0] * bc[0] + ab[1] * bc[1]) / (norm_ab * norm_bc)
    cos_val = max(-1.0, min(1.0, cos_val))
    return math.degrees(math.acos(cos_val))


def has_leg_landmarks(landmarks: Optional[Sequence[Point]]) -> bool:
    """True when every hip/knee/ankle index is present in the bundle."""
    if not landmarks:
        return False
    return len(landmarks) > max(LandmarkIdx.LEGS)


def knee_angles(
    landmarks: Sequence[Point],
) -> tuple[Optional[float], Optional[float]]:
    """(left, right) knee angles from hip-knee-ankle triples."""
    left = compute_angle(
        _get_point(landmarks, LandmarkIdx.LEFT_HIP),
        _get_point(landmarks, LandmarkIdx.LEFT_KNEE),
        _get_point(landmarks, LandmarkIdx.LEFT_ANKLE),
    )
    right = compute_angle(
        _get_point(landmarks, LandmarkIdx.RIGHT_HIP),
        _get_point(landmarks, LandmarkIdx.RIGHT_KNEE),
        _get_point(landmarks, LandmarkIdx.RIGHT_ANKLE),
    )
    return left, right

