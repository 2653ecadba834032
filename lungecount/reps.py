"""
Rep detection for alternating-leg lunges.
A rep counts when one knee is deeply bent while the other is folded past the
straight threshold, the previous rep was on the other leg, and the debounce
interval has passed since the last counted rep.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .config import LungeConfig

logger = logging.getLogger(__name__)

FEEDBACK_LOWER_LEFT = "go lower on left"
FEEDBACK_LOWER_RIGHT = "go lower on right"
FEEDBACK_REP_DONE = "great job, keep alternating legs"

Clock = Callable[[], float]


class Leg(Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


@dataclass
class RepState:
    """Leg of the most recent rep and when it was counted (clock seconds; None = never)."""
    last_leg: Leg = Leg.NONE
    last_rep_time: Optional[float] = None


class RepStateMachine:
    def __init__(
        self,
        config: Optional[LungeConfig] = None,
        clock: Clock = time.monotonic,
        state: Optional[RepState] = None,
    ):
        self.config = config or LungeConfig()
        self.clock = clock
        self.state = state if state is not None else RepState()
        self._last_feedback: Optional[str] = None
        self._last_feedback_time: Optional[float] = None

    def reset(self) -> None:
        self.state = RepState()
        self._last_feedback = None
        self._last_feedback_time = None

    def form_feedback(
        self,
        left_angle: float,
        right_angle: float,
        now: Optional[float] = None,
    ) -> Optional[str]:
        """
        "Go lower" cue for the leg that did the last rep, if it is still shallow.
        Must run before is_rep_complete for the same sample.
        """
        cfg = self.config
        message = None
        if left_angle > cfg.form_shallow_deg and self.state.last_leg is Leg.LEFT:
            message = FEEDBACK_LOWER_LEFT
        elif right_angle > cfg.form_shallow_deg and self.state.last_leg is Leg.RIGHT:
            message = FEEDBACK_LOWER_RIGHT
        if message is None or cfg.feedback_cooldown_sec <= 0:
            return message

        now = self.clock() if now is None else now
        if (
            message == self._last_feedback
            and self._last_feedback_time is not None
            and 0 <= now - self._last_feedback_time < cfg.feedback_cooldown_sec
        ):
            return None
        self._last_feedback = message
        self._last_feedback_time = now
        return message

    def is_rep_complete(
        self,
        left_angle: float,
        right_angle: float,
        now: Optional[float] = None,
    ) -> bool:
        cfg = self.config
        now = self.clock() if now is None else now
        state = self.state

        if state.last_rep_time is not None and now < state.last_rep_time:
            # Clock restarted; the old instant no longer bounds the debounce.
            logger.warning(
                "lunge_rep: clock went backwards (%.3f < %.3f), clearing debounce",
                now, state.last_rep_time,
            )
            state.last_rep_time = None

        if state.last_rep_time is not None and now - state.last_rep_time < cfg.rep_debounce_sec:
            return False

        if (
            left_angle <= cfg.rep_bent_max_deg
            and right_angle >= cfg.rep_straight_min_deg
            and state.last_leg is not Leg.LEFT
        ):
            leg = Leg.LEFT
        elif (
            right_angle <= cfg.rep_bent_max_deg
            and left_angle >= cfg.rep_straight_min_deg
            and state.last_leg is not Leg.RIGHT
        ):
            leg = Leg.RIGHT
        else:
            return False

        state.last_leg = leg
        state.last_rep_time = now
        logger.info(
            "lunge_rep: %s leg (left=%.1f right=%.1f t=%.3f)",
            leg.value, left_angle, right_angle, now,
        )
        return True
