"""
Lunge depth progress: knee angle -> [0, 1], then a trailing moving average.
"""
from __future__ import annotations

from .config import SMOOTHING_WINDOW, START_ANGLE_DEG, TARGET_ANGLE_DEG


def estimate_progress(
    left_angle: float,
    right_angle: float,
    start_angle: float = START_ANGLE_DEG,
    target_angle: float = TARGET_ANGLE_DEG,
) -> float:
    """
    Linear map of the more-bent knee from start_angle (0.0) to target_angle (1.0).
    Uses min() so progress follows whichever leg is working.
    """
    current = min(left_angle, right_angle)
    progress = (start_angle - current) / (start_angle - target_angle)
    return max(0.0, min(1.0, progress))


class ProgressSmoother:
    """Simple moving average over the last `window_size` progress values."""

    def __init__(self, window_size: int = SMOOTHING_WINDOW):
        self.window_size = window_size
        self.values: list[float] = []

    def smooth(self, value: float) -> float:
        self.values.append(value)
        if len(self.values) > self.window_size:
            self.values.pop(0)
        return sum(self.values) / len(self.values)

    def reset(self) -> None:
        self.values.clear()
