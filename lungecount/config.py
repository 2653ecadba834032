"""
Thresholds for lunge progress, rep detection and form feedback.
Defaults can be overridden through LUNGE_* environment variables (see from_env).
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

# Knee angle when standing upright (progress 0).
START_ANGLE_DEG = 180.0
# Knee angle at full lunge depth (progress 1).
TARGET_ANGLE_DEG = 90.0
# Trailing samples averaged for the progress signal.
SMOOTHING_WINDOW = 5
# Minimum time between two counted reps.
REP_DEBOUNCE_SEC = 1.0
# Working knee must be at or below this to complete a rep.
REP_BENT_MAX_DEG = 85.0
# Other knee must be at or above this to complete a rep.
REP_STRAIGHT_MIN_DEG = 175.0
# Working knee above this after a rep triggers "go lower".
FORM_SHALLOW_DEG = 100.0
# 0 = feedback fires on every qualifying sample.
FEEDBACK_COOLDOWN_SEC = 0.0

ENV_PREFIX = "LUNGE_"


@dataclass(frozen=True)
class LungeConfig:
    start_angle_deg: float = START_ANGLE_DEG
    target_angle_deg: float = TARGET_ANGLE_DEG
    smoothing_window: int = SMOOTHING_WINDOW
    rep_debounce_sec: float = REP_DEBOUNCE_SEC
    rep_bent_max_deg: float = REP_BENT_MAX_DEG
    rep_straight_min_deg: float = REP_STRAIGHT_MIN_DEG
    form_shallow_deg: float = FORM_SHALLOW_DEG
    feedback_cooldown_sec: float = FEEDBACK_COOLDOWN_SEC

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise ValueError(f"{f.name} must be finite, got {value}")
        if self.smoothing_window < 1:
            raise ValueError(f"smoothing_window must be >= 1, got {self.smoothing_window}")
        if self.start_angle_deg <= self.target_angle_deg:
            raise ValueError(
                f"start_angle_deg ({self.start_angle_deg}) must be greater than "
                f"target_angle_deg ({self.target_angle_deg})"
            )
        if self.rep_debounce_sec < 0:
            raise ValueError(f"rep_debounce_sec must be >= 0, got {self.rep_debounce_sec}")
        if self.feedback_cooldown_sec < 0:
            raise ValueError(f"feedback_cooldown_sec must be >= 0, got {self.feedback_cooldown_sec}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LungeConfig":
        """
        Build config from LUNGE_<FIELD> variables, e.g. LUNGE_REP_DEBOUNCE_SEC=1.5.
        Unset or empty variables keep the default.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, float | int] = {}
        for f in fields(cls):
            name = ENV_PREFIX + f.name.upper()
            raw = env.get(name, "").strip()
            if not raw:
                continue
            try:
                overrides[f.name] = int(raw) if f.type in (int, "int") else float(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}") from None
        return cls(**overrides)
