"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
Every model is frozen: engines produce new values with
``dataclasses.replace`` instead of mutating their inputs.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import NamedTuple

from .constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_ELO,
    DEFAULT_INTERVAL,
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
)


class Algorithm(str, Enum):
    """Scheduling policy stored alongside each progress record."""

    FSRS = "FSRS"
    SM2 = "SM-2"
    LEITNER = "Leitner"

    @classmethod
    def from_tag(cls, tag: "Algorithm | str | None") -> "Algorithm | None":
        """
        Resolve a stored tag to an Algorithm.

        Accepts the canonical values as well as loose spellings such as
        "sm2", "sm_2" or "leitner". Returns None for anything unknown.
        """
        if isinstance(tag, cls):
            return tag
        if not isinstance(tag, str):
            return None

        squashed = tag.strip().upper().replace("-", "").replace("_", "")
        for member in cls:
            if squashed == member.value.upper().replace("-", ""):
                return member
        return None


class FsrsPhase(IntEnum):
    """FSRS card phase."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


@dataclass(frozen=True)
class FsrsState:
    """
    FSRS memory sub-state.

    Attributes:
        stability: Memory half-life proxy in days (>= 0.1).
        difficulty: Normalized difficulty in [0.1, 1.0].
        last_review: When this sub-state was last updated.
        reps: Cumulative successful reviews.
        lapses: Cumulative failed reviews.
        state: Current phase of the card.
    """

    stability: float
    difficulty: float
    last_review: datetime
    reps: int = 0
    lapses: int = 0
    state: FsrsPhase = FsrsPhase.NEW


@dataclass(frozen=True)
class SpacedRepetitionState:
    """
    Per-item scheduling state shared by every algorithm.

    ``leitner_box`` and ``fsrs_state`` are only meaningful to their own
    engine. They are carried through untouched by the other engines so
    that switching algorithms never discards them.
    """

    interval: int = DEFAULT_INTERVAL  # days until next review
    ease_factor: float = DEFAULT_EASE_FACTOR  # SM-2
    repetition_count: int = 0
    due_date: datetime | None = None
    last_studied: datetime | None = None
    leitner_box: int | None = None  # 1-5
    fsrs_state: FsrsState | None = None


@dataclass(frozen=True)
class ReviewResult:
    """
    A single review event.

    Attributes:
        confidence: Self-reported certainty, 1 (guess) to 5 (certain).
        correct: Whether the answer was right.
        time_spent: Seconds spent answering. Telemetry only.
    """

    confidence: int
    correct: bool
    time_spent: float = 0.0

    def normalized(self) -> "ReviewResult":
        """Clamp out-of-contract values instead of rejecting them."""
        confidence = min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, int(self.confidence)))
        time_spent = max(0.0, float(self.time_spent))
        if confidence == self.confidence and time_spent == self.time_spent:
            return self
        return replace(self, confidence=confidence, time_spent=time_spent)


@dataclass(frozen=True)
class EloHistoryEntry:
    timestamp: datetime
    rating: float
    confidence: int
    correct: bool


@dataclass(frozen=True)
class EloState:
    """Competence rating with its append-only history."""

    rating: float = DEFAULT_ELO
    history: tuple[EloHistoryEntry, ...] = ()


@dataclass(frozen=True)
class EloCategory:
    level: str
    color: str


class ProgressKey(NamedTuple):
    """Identifies one reviewable item for one user."""

    user_id: str
    item_id: str
    card_index: int = 0


@dataclass(frozen=True)
class PerformanceEntry:
    """Telemetry captured for every review of a tracked item."""

    timestamp: datetime
    confidence: int
    correct: bool
    time_spent: float
    ease_factor: float | None = None
    interval: int | None = None


@dataclass(frozen=True)
class ProgressRecord:
    """
    The unit persisted by a ProgressRepository.

    Bundles the scheduling state with the algorithm tag it is driven
    by, the ELO competence state and review telemetry.
    """

    id: str
    user_id: str
    item_id: str
    card_index: int
    algorithm: Algorithm
    state: SpacedRepetitionState
    elo: EloState = field(default_factory=EloState)
    mastery_level: float = 0.0
    study_sessions: int = 0
    confidence: int | None = None  # last reported confidence
    performance: tuple[PerformanceEntry, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> ProgressKey:
        return ProgressKey(self.user_id, self.item_id, self.card_index)

    @property
    def due_date(self) -> datetime | None:
        return self.state.due_date
