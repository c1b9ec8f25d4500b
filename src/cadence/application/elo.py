"""
ELO rating for item and learner competence.

Independent of due-date scheduling: it tracks a separate scalar that
starts at 1500 and is clamped to [0, 3000].

This is a pure computation module with no I/O.
"""

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from cadence.domain.constants import (
    DEFAULT_ELO,
    DEFAULT_K_FACTOR,
    ELO_HIGH_K_MULTIPLIER,
    ELO_HIGH_RATING,
    ELO_LOW_K_MULTIPLIER,
    ELO_LOW_RATING,
    ELO_SCALE,
    ELO_TREND_NORMALIZER,
    ELO_TREND_WINDOW,
    MAX_CONFIDENCE,
    MAX_ELO,
    MIN_CONFIDENCE,
    MIN_ELO,
)
from cadence.domain.models import EloCategory, EloHistoryEntry, EloState

from .engines.base import clamp, confidence_to_score, round_half_up, utc_now

# Upper bounds are exclusive; anything >= the last bound is Master.
_CATEGORY_BANDS: tuple[tuple[float, EloCategory], ...] = (
    (1000, EloCategory("Beginner", "gray")),
    (1400, EloCategory("Novice", "blue")),
    (1600, EloCategory("Intermediate", "green")),
    (1800, EloCategory("Advanced", "yellow")),
    (2000, EloCategory("Expert", "orange")),
)
_TOP_CATEGORY = EloCategory("Master", "red")


def calculate_expected_score(rating: float, opponent_rating: float) -> float:
    """
    Probability that ``rating`` beats ``opponent_rating``.

    E = 1 / (1 + 10^((R_opponent - R) / 400))
    """
    return 1 / (1 + 10 ** ((opponent_rating - rating) / ELO_SCALE))


def _apply(rating: float, expected: float, actual: float, k_factor: float) -> int:
    new_rating = rating + k_factor * (actual - expected)
    return round_half_up(clamp(new_rating, MIN_ELO, MAX_ELO))


def update_elo(
    current_rating: float,
    confidence: int,
    correct: bool,
    k_factor: float = DEFAULT_K_FACTOR,
) -> int:
    """
    Calculate a new rating from one review.

    The expected score comes from self-reported confidence
    (1 -> 0.1 ... 5 -> 0.9), so a confident wrong answer costs more
    than a hesitant one.

    Args:
        current_rating: Rating before the review.
        confidence: Confidence 1-5 (clamped).
        correct: Whether the answer was right.
        k_factor: Maximum rating change per review.

    Returns:
        New rating, clamped to [0, 3000] and rounded to an integer.
    """
    confidence = min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, int(confidence)))
    expected = confidence_to_score(confidence)
    actual = 1.0 if correct else 0.0
    return _apply(current_rating, expected, actual, k_factor)


def update_elo_with_opponent(
    player_rating: float,
    opponent_rating: float,
    won: bool,
    k_factor: float = DEFAULT_K_FACTOR,
) -> int:
    """Classic ELO update against an opponent (e.g. a cohort average)."""
    expected = calculate_expected_score(player_rating, opponent_rating)
    return _apply(player_rating, expected, 1.0 if won else 0.0, k_factor)


def calculate_dynamic_k_factor(
    current_rating: float, default_k: float = DEFAULT_K_FACTOR
) -> float:
    """
    Faster movement for weak items, slower for mastered ones.
    """
    if current_rating < ELO_LOW_RATING:
        return default_k * ELO_LOW_K_MULTIPLIER
    if current_rating > ELO_HIGH_RATING:
        return default_k * ELO_HIGH_K_MULTIPLIER
    return default_k


def initialize_elo() -> int:
    return DEFAULT_ELO


def calculate_elo_trend(
    history: Sequence[EloHistoryEntry], window_size: int = ELO_TREND_WINDOW
) -> float:
    """
    Performance trend over the last ``window_size`` entries.

    Returns:
        A score from -1 (declining) to 1 (improving); 0 with fewer than two entries.
    """
    if len(history) < 2:
        return 0.0

    recent = list(history)
    if window_size > 0:
        recent = recent[-window_size:]
    change = recent[-1].rating - recent[0].rating
    return clamp(change / ELO_TREND_NORMALIZER, -1.0, 1.0)


def get_elo_category(rating: float) -> EloCategory:
    for upper, category in _CATEGORY_BANDS:
        if rating < upper:
            return category
    return _TOP_CATEGORY


def record_elo_review(
    elo: EloState,
    confidence: int,
    correct: bool,
    k_factor: float = DEFAULT_K_FACTOR,
    dynamic: bool = True,
    now: datetime | None = None,
) -> EloState:
    """
    Apply one review to an EloState and append it to the history.

    When ``dynamic`` is set, ``k_factor`` is scaled by
    calculate_dynamic_k_factor for the current rating.
    """
    now = now or utc_now()
    k = calculate_dynamic_k_factor(elo.rating, k_factor) if dynamic else k_factor
    rating = update_elo(elo.rating, confidence, correct, k)
    entry = EloHistoryEntry(
        timestamp=now, rating=rating, confidence=confidence, correct=correct
    )
    return replace(elo, rating=rating, history=elo.history + (entry,))


# Aliases kept for callers that use the rating-centric names
calculate_elo_rating = update_elo
get_initial_elo_rating = initialize_elo
