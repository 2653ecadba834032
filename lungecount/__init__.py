"""
Alternating-leg lunge rep counting from per-frame pose landmarks.
"""
from .config import LungeConfig
from .counter import CallbackListener, ExerciseRepCounter, LungeRepCounter, RepCounterListener
from .reps import Leg, RepState

__all__ = [
    "CallbackListener",
    "ExerciseRepCounter",
    "Leg",
    "LungeConfig",
    "LungeRepCounter",
    "RepCounterListener",
    "RepState",
]
