"""
Shared capability and helpers for scheduling engines.

An engine is a stateless policy object: it never stores per-item data,
it only maps (state, review, clock) to a new state.
"""

import math
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from cadence.domain.models import Algorithm, ReviewResult, SpacedRepetitionState


class SchedulingEngine(ABC):
    """
    Capability pair every scheduling algorithm satisfies.

    Both methods are total: out-of-range inputs are clamped, never rejected.
    """

    algorithm: Algorithm

    @abstractmethod
    def initialize(self, now: datetime | None = None) -> SpacedRepetitionState:
        """Build the state for an item scheduled for the first time."""
        ...

    @abstractmethod
    def update(
        self,
        state: SpacedRepetitionState,
        result: ReviewResult,
        now: datetime | None = None,
    ) -> SpacedRepetitionState:
        """Apply one review event and return the next state."""
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def due_after(now: datetime, interval_days: int) -> datetime:
    return now + timedelta(days=interval_days)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def confidence_to_score(confidence: int) -> float:
    """
    Map confidence 1-5 onto an expected-score scale.

    1 -> 0.1, 2 -> 0.3, 3 -> 0.5, 4 -> 0.7, 5 -> 0.9. Used as the FSRS
    recall estimate and as the ELO expected score.
    """
    return 0.1 + (confidence - 1) * 0.2


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
