"""Leitner system: cards move between fixed-interval boxes."""

from dataclasses import dataclass, replace
from datetime import datetime

from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    LEITNER_BOX_INTERVALS,
    LEITNER_PROMOTION_CONFIDENCE,
)
from cadence.domain.models import Algorithm, ReviewResult, SpacedRepetitionState

from .base import SchedulingEngine, due_after, utc_now


@dataclass(frozen=True)
class LeitnerParameters:
    box_intervals: tuple[int, ...] = LEITNER_BOX_INTERVALS
    promotion_confidence: int = LEITNER_PROMOTION_CONFIDENCE

    @property
    def top_box(self) -> int:
        return len(self.box_intervals)

    def interval_for(self, box: int) -> int:
        return self.box_intervals[box - 1]


class LeitnerEngine(SchedulingEngine):
    algorithm = Algorithm.LEITNER

    def __init__(self, params: LeitnerParameters | None = None):
        self.params = params or LeitnerParameters()

    def initialize(self, now: datetime | None = None) -> SpacedRepetitionState:
        now = now or utc_now()
        return SpacedRepetitionState(
            interval=DEFAULT_INTERVAL,
            ease_factor=DEFAULT_EASE_FACTOR,
            repetition_count=0,
            due_date=due_after(now, DEFAULT_INTERVAL),
            last_studied=now,
            leitner_box=1,
        )

    def update(
        self,
        state: SpacedRepetitionState,
        result: ReviewResult,
        now: datetime | None = None,
    ) -> SpacedRepetitionState:
        now = now or utc_now()
        result = result.normalized()
        box = min(max(state.leitner_box or 1, 1), self.params.top_box)

        if result.correct and result.confidence >= self.params.promotion_confidence:
            box = min(box + 1, self.params.top_box)
            repetitions = state.repetition_count + 1
        else:
            # Wrong or unsure - back to the first box
            box = 1
            repetitions = 0

        interval = self.params.interval_for(box)
        return replace(
            state,
            interval=interval,
            repetition_count=repetitions,
            due_date=due_after(now, interval),
            last_studied=now,
            leitner_box=box,
        )
