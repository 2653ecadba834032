"""
Draw leg skeleton, rep count, progress bar and feedback on frames (in-place).
"""
from __future__ import annotations

from typing import Optional, Sequence

import cv2
import numpy as np

from .pose import LandmarkIdx

_LEG_CONNECTIONS = (
    (LandmarkIdx.LEFT_HIP, LandmarkIdx.RIGHT_HIP),
    (LandmarkIdx.LEFT_HIP, LandmarkIdx.LEFT_KNEE),
    (LandmarkIdx.LEFT_KNEE, LandmarkIdx.LEFT_ANKLE),
    (LandmarkIdx.RIGHT_HIP, LandmarkIdx.RIGHT_KNEE),
    (LandmarkIdx.RIGHT_KNEE, LandmarkIdx.RIGHT_ANKLE),
)

_LEFT_COLOR = (255, 160, 0)
_RIGHT_COLOR = (0, 160, 255)
_TEXT_COLOR = (255, 255, 255)


def _pt(p: Sequence[float], w: int, h: int) -> tuple[int, int]:
    """Normalized landmark -> pixel."""
    return (int(round(p[0] * w)), int(round(p[1] * h)))


def draw_legs(
    frame: np.ndarray,
    landmarks: Sequence[Sequence[float]],
    thickness: int = 3,
) -> None:
    """Draw hip-knee-ankle chains. Left leg and right leg get different colors."""
    if not landmarks or len(landmarks) <= max(LandmarkIdx.LEGS):
        return
    h, w = frame.shape[:2]
    for i, j in _LEG_CONNECTIONS:
        color = _RIGHT_COLOR if LandmarkIdx.RIGHT_KNEE in (i, j) else _LEFT_COLOR
        cv2.line(frame, _pt(landmarks[i], w, h), _pt(landmarks[j], w, h), color, thickness)
    for idx in LandmarkIdx.LEGS:
        cv2.circle(frame, _pt(landmarks[idx], w, h), 5, _TEXT_COLOR, -1)


def draw_progress_bar(
    frame: np.ndarray,
    progress: Optional[float],
    width: int = 24,
    margin: int = 20,
) -> None:
    """Vertical bar on the right edge, filled bottom-up by progress (0..1)."""
    h, w = frame.shape[:2]
    x1, x0 = w - margin, w - margin - width
    y0, y1 = margin, h - margin
    cv2.rectangle(frame, (x0, y0), (x1, y1), _TEXT_COLOR, 2)
    if progress is None:
        return
    fill = int(round((y1 - y0) * max(0.0, min(1.0, progress))))
    if fill > 0:
        cv2.rectangle(frame, (x0 + 2, y1 - fill), (x1 - 2, y1 - 2), (0, 220, 0), -1)


def draw_realtime_overlay(
    frame: np.ndarray,
    landmarks: Optional[Sequence[Sequence[float]]],
    rep_count: int,
    progress: Optional[float],
    status: str,
    feedback: Optional[str] = None,
) -> None:
    """
    Draw realtime overlay on frame:
    - Leg skeleton if landmarks present
    - Reps, status, progress bar
    - Latest feedback message at the bottom
    """
    h, w = frame.shape[:2]
    if landmarks:
        draw_legs(frame, landmarks)

    overlay = frame.copy()
    cv2.rectangle(overlay, (0, 0), (w, 70), (40, 40, 40), -1)
    cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

    font = cv2.FONT_HERSHEY_SIMPLEX
    cv2.putText(frame, f"Reps: {rep_count}", (12, 30), font, 0.8, _TEXT_COLOR, 2, cv2.LINE_AA)
    cv2.putText(frame, f"Status: {status}", (12, 58), font, 0.6, _TEXT_COLOR, 2, cv2.LINE_AA)
    draw_progress_bar(frame, progress)

    if feedback:
        cv2.putText(frame, feedback, (12, h - 24), font, 0.8, (0, 200, 255), 2, cv2.LINE_AA)
