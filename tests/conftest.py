from __future__ import annotations

import math

import pytest

from lungecount.pose import Landmark, LandmarkIdx

NUM_LANDMARKS = 33


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class RecordingListener:
    def __init__(self) -> None:
        self.progress: list[float] = []
        self.feedback: list[str] = []
        self.reps = 0
        self.events: list[tuple] = []

    def report_progress(self, value: float) -> None:
        self.progress.append(value)
        self.events.append(("progress", value))

    def report_feedback(self, message: str) -> None:
        self.feedback.append(message)
        self.events.append(("feedback", message))

    def report_rep_completed(self) -> None:
        self.reps += 1
        self.events.append(("rep",))


def _leg(hip_x: float, angle_deg: float) -> tuple[Landmark, Landmark, Landmark]:
    """Hip straight above knee; ankle placed so a->b vs b->c is angle_deg."""
    hip = Landmark(hip_x, 0.3)
    knee = Landmark(hip_x, 0.5)
    theta = math.radians(angle_deg)
    ankle = Landmark(knee.x + 0.2 * math.sin(theta), knee.y + 0.2 * math.cos(theta))
    return hip, knee, ankle


def make_landmarks(left_angle: float, right_angle: float) -> list[Landmark]:
    landmarks = [Landmark(0.5, 0.5)] * NUM_LANDMARKS
    lh, lk, la = _leg(0.45, left_angle)
    rh, rk, ra = _leg(0.55, right_angle)
    landmarks[LandmarkIdx.LEFT_HIP] = lh
    landmarks[LandmarkIdx.LEFT_KNEE] = lk
    landmarks[LandmarkIdx.LEFT_ANKLE] = la
    landmarks[LandmarkIdx.RIGHT_HIP] = rh
    landmarks[LandmarkIdx.RIGHT_KNEE] = rk
    landmarks[LandmarkIdx.RIGHT_ANKLE] = ra
    return landmarks


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=100.0)


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()

