from .banner import Banner
from .scheduler import RotationScheduler, RotationState, compute_dwell_ms, word_count
from .transition import TransitionCoordinator, TransitionPhase

__all__ = [
    "Banner",
    "RotationScheduler",
    "RotationState",
    "TransitionCoordinator",
    "TransitionPhase",
    "compute_dwell_ms",
    "word_count",
]
