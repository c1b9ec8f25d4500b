"""SM-2 (SuperMemo 2) spaced repetition algorithm.

The SM-2 algorithm calculates review intervals from an ease factor that
drifts with the quality of each recall (0-5 scale).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType

from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    SM2_DEFAULT_QUALITY,
    SM2_FIRST_INTERVAL,
    SM2_MIN_EASE_FACTOR,
    SM2_PASSING_QUALITY,
    SM2_QUALITY_BY_CONFIDENCE,
    SM2_SECOND_INTERVAL,
)
from cadence.domain.models import Algorithm, ReviewResult, SpacedRepetitionState

from .base import SchedulingEngine, due_after, round_half_up, utc_now


@dataclass(frozen=True)
class Sm2Parameters:
    """Replaceable coefficient table for SM-2."""

    min_ease_factor: float = SM2_MIN_EASE_FACTOR
    passing_quality: int = SM2_PASSING_QUALITY
    reset_interval: int = DEFAULT_INTERVAL  # after a failed recall
    first_interval: int = SM2_FIRST_INTERVAL
    second_interval: int = SM2_SECOND_INTERVAL
    default_quality: int = SM2_DEFAULT_QUALITY
    quality_by_confidence: Mapping[int, int] = field(
        default_factory=lambda: MappingProxyType(dict(SM2_QUALITY_BY_CONFIDENCE))
    )


class Sm2Engine(SchedulingEngine):
    algorithm = Algorithm.SM2

    def __init__(self, params: Sm2Parameters | None = None):
        self.params = params or Sm2Parameters()

    def quality(self, result: ReviewResult) -> int:
        """
        Convert a review into an SM-2 quality score.

        Returns:
            0 for a wrong answer. For a right answer, confidence 3 maps
            to 2 (hesitant), 4 to 4, 5 to 5 and anything else to 3.
        """
        if not result.correct:
            return 0
        return self.params.quality_by_confidence.get(
            result.confidence, self.params.default_quality
        )

    def next_ease_factor(self, ease_factor: float, quality: int) -> float:
        miss = 5 - quality
        new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
        return max(self.params.min_ease_factor, new_ease)

    def initialize(self, now: datetime | None = None) -> SpacedRepetitionState:
        now = now or utc_now()
        return SpacedRepetitionState(
            interval=DEFAULT_INTERVAL,
            ease_factor=DEFAULT_EASE_FACTOR,
            repetition_count=0,
            due_date=due_after(now, DEFAULT_INTERVAL),
            last_studied=now,
        )

    def update(
        self,
        state: SpacedRepetitionState,
        result: ReviewResult,
        now: datetime | None = None,
    ) -> SpacedRepetitionState:
        now = now or utc_now()
        quality = self.quality(result.normalized())
        ease_factor = self.next_ease_factor(state.ease_factor, quality)

        if quality < self.params.passing_quality:
            # Failed recall - reset
            interval = self.params.reset_interval
            repetitions = 0
        else:
            if state.repetition_count <= 0:
                interval = self.params.first_interval
            elif state.repetition_count == 1:
                interval = self.params.second_interval
            else:
                interval = max(1, round_half_up(state.interval * ease_factor))
            repetitions = max(0, state.repetition_count) + 1

        return replace(
            state,
            interval=interval,
            ease_factor=ease_factor,
            repetition_count=repetitions,
            due_date=due_after(now, interval),
            last_studied=now,
        )
