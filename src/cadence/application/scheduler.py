"""
Algorithm-selection facade.

Routes initialize/update calls to the engine registered for an
Algorithm tag and hosts the algorithm-independent helpers (mastery,
due date, next-review selection).
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TypeVar

from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    MASTERY_DIFFICULTY_WEIGHT,
    MASTERY_EASE_WEIGHT,
    MASTERY_REPETITION_TARGET,
    MASTERY_REPETITION_WEIGHT,
    MASTERY_STABILITY_HORIZON,
    MASTERY_STABILITY_WEIGHT,
    SM2_MIN_EASE_FACTOR,
)
from cadence.domain.models import Algorithm, ReviewResult, SpacedRepetitionState

from .engines import FsrsEngine, LeitnerEngine, SchedulingEngine, Sm2Engine
from .engines.base import clamp, utc_now

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = Algorithm.FSRS

ENGINES: dict[Algorithm, SchedulingEngine] = {
    Algorithm.FSRS: FsrsEngine(),
    Algorithm.SM2: Sm2Engine(),
    Algorithm.LEITNER: LeitnerEngine(),
}

T = TypeVar("T")


def resolve_algorithm(tag: Algorithm | str | None) -> Algorithm:
    """Resolve a stored tag, falling back to FSRS when it is missing or unknown."""
    if tag is None:
        return DEFAULT_ALGORITHM
    algorithm = Algorithm.from_tag(tag)
    if algorithm is None:
        logger.warning(f"Unknown algorithm tag {tag!r}, using {DEFAULT_ALGORITHM.value}")
        return DEFAULT_ALGORITHM
    return algorithm


def get_engine(algorithm: Algorithm | str | None = None) -> SchedulingEngine:
    return ENGINES[resolve_algorithm(algorithm)]


def initialize_state(
    algorithm: Algorithm | str | None = None, now: datetime | None = None
) -> SpacedRepetitionState:
    """Build the starting state for a newly scheduled item."""
    return get_engine(algorithm).initialize(now)


def update_spaced_repetition(
    state: SpacedRepetitionState,
    result: ReviewResult,
    algorithm: Algorithm | str | None = None,
    now: datetime | None = None,
) -> SpacedRepetitionState:
    """Apply a review with the engine selected by ``algorithm``."""
    return get_engine(algorithm).update(state, result, now)


def calculate_mastery(state: SpacedRepetitionState) -> float:
    """
    Normalized [0, 1] retention estimate.

    FSRS items score on stability (one year counts as full) and ease
    (1 - difficulty). Other items score on repetition count (ten counts
    as full) and ease factor above the SM-2 floor.
    """
    if state.fsrs_state is not None:
        stability_score = min(state.fsrs_state.stability / MASTERY_STABILITY_HORIZON, 1)
        difficulty_score = 1 - state.fsrs_state.difficulty
        mastery = (
            stability_score * MASTERY_STABILITY_WEIGHT
            + difficulty_score * MASTERY_DIFFICULTY_WEIGHT
        )
    else:
        rep_score = min(state.repetition_count / MASTERY_REPETITION_TARGET, 1)
        ease_span = DEFAULT_EASE_FACTOR - SM2_MIN_EASE_FACTOR
        ease_score = min((state.ease_factor - SM2_MIN_EASE_FACTOR) / ease_span, 1)
        mastery = rep_score * MASTERY_REPETITION_WEIGHT + ease_score * MASTERY_EASE_WEIGHT

    return clamp(mastery, 0.0, 1.0)


def calculate_due_date(state: SpacedRepetitionState) -> datetime | None:
    return state.due_date


def _due_date_of(item) -> datetime:
    return item.due_date


def get_next_review(
    items: Iterable[T],
    now: datetime | None = None,
    key: Callable[[T], datetime] = _due_date_of,
) -> T | None:
    """
    Pick the item to review next.

    Among items already due, the one that has been due longest wins.
    If nothing is due yet, the item with the nearest future due date is
    returned instead.

    Args:
        items: Anything with a due date (ProgressRecord, SpacedRepetitionState, ...).
        now: Reference time; defaults to the current UTC time.
        key: Extracts the due date from an item.

    Returns:
        The selected item, or None only when ``items`` is empty.
    """
    now = now or utc_now()
    candidates = list(items)
    if not candidates:
        return None

    due = [item for item in candidates if key(item) <= now]
    return min(due or candidates, key=key)
