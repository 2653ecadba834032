"""
Per-sample lunge counter: landmarks in, progress / feedback / rep events out.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, Sequence

from .config import LungeConfig
from .geometry import Point, has_leg_landmarks, knee_angles
from .progress import ProgressSmoother, estimate_progress
from .reps import FEEDBACK_REP_DONE, Clock, RepState, RepStateMachine

logger = logging.getLogger(__name__)


class RepCounterListener(Protocol):
    def report_progress(self, value: float) -> None: ...

    def report_feedback(self, message: str) -> None: ...

    def report_rep_completed(self) -> None: ...


class CallbackListener:
    """Adapts plain callables to RepCounterListener. Missing callbacks are no-ops."""

    def __init__(
        self,
        on_progress: Optional[Callable[[float], None]] = None,
        on_feedback: Optional[Callable[[str], None]] = None,
        on_rep: Optional[Callable[[], None]] = None,
    ):
        self.on_progress = on_progress
        self.on_feedback = on_feedback
        self.on_rep = on_rep

    def report_progress(self, value: float) -> None:
        if self.on_progress is not None:
            self.on_progress(value)

    def report_feedback(self, message: str) -> None:
        if self.on_feedback is not None:
            self.on_feedback(message)

    def report_rep_completed(self) -> None:
        if self.on_rep is not None:
            self.on_rep()


class ExerciseRepCounter(ABC):
    """
    Base for exercise counters. Subclasses implement set_results() and use the
    send_* / increment_rep_count helpers to reach the listener.
    """

    def __init__(self, listener: Optional[RepCounterListener] = None):
        self.listener: RepCounterListener = listener or CallbackListener()
        self.rep_count = 0

    def increment_rep_count(self) -> None:
        self.rep_count += 1
        self.listener.report_rep_completed()

    def send_progress_update(self, value: float) -> None:
        self.listener.report_progress(value)

    def send_feedback_message(self, message: str) -> None:
        self.listener.report_feedback(message)

    @abstractmethod
    def set_results(self, landmarks: Optional[Sequence[Point]]) -> dict[str, Any]:
        ...

    def reset(self) -> None:
        self.rep_count = 0


class LungeRepCounter(ExerciseRepCounter):
    """
    Alternating-leg lunge counter. Call set_results() once per pose sample.
    """

    def __init__(
        self,
        listener: Optional[RepCounterListener] = None,
        config: Optional[LungeConfig] = None,
        clock: Clock = time.monotonic,
        state: Optional[RepState] = None,
    ):
        super().__init__(listener)
        self.config = config or LungeConfig()
        self.clock = clock
        self.smoother = ProgressSmoother(self.config.smoothing_window)
        self.reps = RepStateMachine(self.config, clock=clock, state=state)

    @property
    def state(self) -> RepState:
        return self.reps.state

    def reset(self) -> None:
        super().reset()
        self.smoother.reset()
        self.reps.reset()

    def _skipped(self, status: str, left: Optional[float] = None, right: Optional[float] = None) -> dict[str, Any]:
        return {
            "rep_count": self.rep_count,
            "progress": None,
            "left_knee_angle": left,
            "right_knee_angle": right,
            "feedback": [],
            "rep_completed": False,
            "last_leg": self.state.last_leg.value,
            "status": status,
        }

    def set_results(self, landmarks: Optional[Sequence[Point]]) -> dict[str, Any]:
        """
        Process one pose sample. Emits nothing when landmarks are missing or a
        knee angle is undefined. Returns the per-sample state for overlays/API.
        """
        if not has_leg_landmarks(landmarks):
            return self._skipped("No pose")

        left, right = knee_angles(landmarks)
        if left is None or right is None:
            logger.debug("lunge_counter: skipping sample, degenerate knee geometry (left=%s right=%s)", left, right)
            return self._skipped("Unreliable pose", left, right)

        cfg = self.config
        now = self.clock()

        raw = estimate_progress(left, right, cfg.start_angle_deg, cfg.target_angle_deg)
        progress = self.smoother.smooth(raw)
        self.send_progress_update(progress)

        feedback: list[str] = []
        cue = self.reps.form_feedback(left, right, now)
        if cue is not None:
            feedback.append(cue)
            self.send_feedback_message(cue)

        rep_completed = self.reps.is_rep_complete(left, right, now)
        if rep_completed:
            self.increment_rep_count()
            feedback.append(FEEDBACK_REP_DONE)
            self.send_feedback_message(FEEDBACK_REP_DONE)
            logger.info("lunge_counter: rep %s (%s leg)", self.rep_count, self.state.last_leg.value)

        return {
            "rep_count": self.rep_count,
            "progress": progress,
            "left_knee_angle": left,
            "right_knee_angle": right,
            "feedback": feedback,
            "rep_completed": rep_completed,
            "last_leg": self.state.last_leg.value,
            "status": "Rep counted" if rep_completed else "Tracking",
        }
