# Domain Package
from .exceptions import CadenceError, ProgressNotFoundError, StoreError
from .models import (
    Algorithm,
    EloCategory,
    EloHistoryEntry,
    EloState,
    FsrsPhase,
    FsrsState,
    PerformanceEntry,
    ProgressKey,
    ProgressRecord,
    ReviewResult,
    SpacedRepetitionState,
)
from .ports import ProgressRepository

__all__ = [
    "Algorithm",
    "CadenceError",
    "EloCategory",
    "EloHistoryEntry",
    "EloState",
    "FsrsPhase",
    "FsrsState",
    "PerformanceEntry",
    "ProgressKey",
    "ProgressNotFoundError",
    "ProgressRecord",
    "ProgressRepository",
    "ReviewResult",
    "SpacedRepetitionState",
    "StoreError",
]
