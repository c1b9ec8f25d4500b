# Scheduling Engines Package
from .base import SchedulingEngine
from .fsrs import FsrsEngine, FsrsParameters
from .leitner import LeitnerEngine, LeitnerParameters
from .sm2 import Sm2Engine, Sm2Parameters

__all__ = [
    "SchedulingEngine",
    "FsrsEngine",
    "FsrsParameters",
    "LeitnerEngine",
    "LeitnerParameters",
    "Sm2Engine",
    "Sm2Parameters",
]
