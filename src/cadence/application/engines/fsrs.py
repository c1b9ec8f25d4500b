"""
FSRS - Free Spaced Repetition Scheduler

A stability/difficulty memory model.

Key concepts:
- Stability (S): How slowly memory decays, in days. The next interval is S rounded.
- Difficulty (D): How hard the card is to learn, normalized to [0.1, 1.0].
- Recall: Review quality estimated from confidence (0.0 when the answer was wrong).

Phase machine:
    NEW --success--> LEARNING --success--> REVIEW <--success-- RELEARNING
    any phase --failure--> RELEARNING
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime

from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    FSRS_DIFFICULTY_RATE,
    FSRS_GROWTH_BIAS,
    FSRS_GROWTH_BONUS_EXPONENT,
    FSRS_GROWTH_DIFFICULTY_WEIGHT,
    FSRS_GROWTH_RECALL_WEIGHT,
    FSRS_INITIAL_DIFFICULTY,
    FSRS_INITIAL_STABILITY,
    FSRS_LAPSE_STABILITY,
    FSRS_MAX_DIFFICULTY,
    FSRS_MIN_DIFFICULTY,
    FSRS_MIN_STABILITY,
    FSRS_RECALL_THRESHOLD,
    FSRS_RELAPSE_RETENTION,
)
from cadence.domain.models import (
    Algorithm,
    FsrsPhase,
    FsrsState,
    ReviewResult,
    SpacedRepetitionState,
)

from .base import (
    SchedulingEngine,
    clamp,
    confidence_to_score,
    due_after,
    round_half_up,
    utc_now,
)


@dataclass(frozen=True)
class FsrsParameters:
    """
    Replaceable coefficient table for FSRS.

    Any parameterization works as long as stability stays >= min_stability
    and difficulty stays inside [min_difficulty, max_difficulty].
    """

    initial_stability: float = FSRS_INITIAL_STABILITY
    initial_difficulty: float = FSRS_INITIAL_DIFFICULTY
    lapse_stability: float = FSRS_LAPSE_STABILITY
    relapse_retention: float = FSRS_RELAPSE_RETENTION
    min_stability: float = FSRS_MIN_STABILITY
    min_difficulty: float = FSRS_MIN_DIFFICULTY
    max_difficulty: float = FSRS_MAX_DIFFICULTY
    difficulty_rate: float = FSRS_DIFFICULTY_RATE
    recall_threshold: float = FSRS_RECALL_THRESHOLD
    growth_bias: float = FSRS_GROWTH_BIAS
    growth_difficulty_weight: float = FSRS_GROWTH_DIFFICULTY_WEIGHT
    growth_recall_weight: float = FSRS_GROWTH_RECALL_WEIGHT
    growth_bonus_exponent: float = FSRS_GROWTH_BONUS_EXPONENT


class FsrsEngine(SchedulingEngine):
    algorithm = Algorithm.FSRS

    def __init__(self, params: FsrsParameters | None = None):
        self.params = params or FsrsParameters()

    def new_card(self, last_review: datetime) -> FsrsState:
        return FsrsState(
            stability=self.params.initial_stability,
            difficulty=self.params.initial_difficulty,
            last_review=last_review,
            reps=0,
            lapses=0,
            state=FsrsPhase.NEW,
        )

    def recall(self, result: ReviewResult) -> float:
        """Estimated recall quality: 0.0 when wrong, 0.1-0.9 by confidence when right."""
        if not result.correct:
            return 0.0
        return confidence_to_score(result.confidence)

    def next_difficulty(self, difficulty: float, recall: float) -> float:
        """
        Move difficulty toward 0 on good recall and toward 1 on poor recall.

        The step shrinks as difficulty approaches the bound it is moving
        toward, then the result is clipped to [min_difficulty, max_difficulty].
        """
        p = self.params
        if recall >= p.recall_threshold:
            difficulty -= p.difficulty_rate * (recall - p.recall_threshold) * (1 - difficulty)
        else:
            difficulty += p.difficulty_rate * (p.recall_threshold - recall) * difficulty
        return clamp(difficulty, p.min_difficulty, p.max_difficulty)

    def stability_growth(self, difficulty: float, recall: float) -> float:
        """
        Multiplier applied to stability after a successful review.

        Formula:
            (1 + exp(bias + w_d * D + w_r * recall)) * (1 + exp(bonus))
        """
        p = self.params
        factor = 1 + math.exp(
            p.growth_bias
            + p.growth_difficulty_weight * difficulty
            + p.growth_recall_weight * recall
        )
        return factor * (1 + math.exp(p.growth_bonus_exponent))

    def initialize(self, now: datetime | None = None) -> SpacedRepetitionState:
        now = now or utc_now()
        return SpacedRepetitionState(
            interval=DEFAULT_INTERVAL,
            ease_factor=DEFAULT_EASE_FACTOR,
            repetition_count=0,
            due_date=due_after(now, DEFAULT_INTERVAL),
            last_studied=now,
            fsrs_state=self.new_card(now),
        )

    def update(
        self,
        state: SpacedRepetitionState,
        result: ReviewResult,
        now: datetime | None = None,
    ) -> SpacedRepetitionState:
        now = now or utc_now()
        p = self.params
        card = state.fsrs_state or self.new_card(state.last_studied or now)
        recall = self.recall(result.normalized())

        difficulty = self.next_difficulty(card.difficulty, recall)
        reps = card.reps
        lapses = card.lapses

        if recall >= p.recall_threshold:
            stability = card.stability * self.stability_growth(difficulty, recall)
            if card.state == FsrsPhase.NEW:
                phase = FsrsPhase.LEARNING
                stability = p.initial_stability
            else:
                # LEARNING and RELEARNING graduate, REVIEW stays put
                phase = FsrsPhase.REVIEW
            reps += 1
        else:
            lapses += 1
            phase = FsrsPhase.RELEARNING
            if card.state in (FsrsPhase.NEW, FsrsPhase.LEARNING):
                stability = p.lapse_stability
            else:
                stability = card.stability * p.relapse_retention

        stability = max(p.min_stability, stability)
        interval = max(1, round_half_up(stability))

        return replace(
            state,
            interval=interval,
            repetition_count=reps,
            due_date=due_after(now, interval),
            last_studied=now,
            fsrs_state=FsrsState(
                stability=stability,
                difficulty=difficulty,
                last_review=now,
                reps=reps,
                lapses=lapses,
                state=phase,
            ),
        )
