"""Human-readable views of scheduling state for the CLI and API."""

import math
from datetime import datetime

from cadence.domain.constants import SECONDS_PER_DAY
from cadence.domain.models import Algorithm, SpacedRepetitionState

from .engines.base import utc_now
from .scheduler import calculate_mastery

_PHASE_LABELS = {0: "New", 1: "Learning", 2: "Review", 3: "Relearning"}
_PHASE_COLORS = {0: "blue", 1: "orange", 2: "green", 3: "red"}
_ALGORITHM_NAMES = {
    Algorithm.FSRS: "FSRS",
    Algorithm.SM2: "SuperMemo 2",
    Algorithm.LEITNER: "Leitner System",
}


def fsrs_phase_label(phase: int) -> str:
    return _PHASE_LABELS.get(int(phase), "Unknown")


def fsrs_phase_color(phase: int) -> str:
    return _PHASE_COLORS.get(int(phase), "gray")


def format_mastery_level(state: SpacedRepetitionState) -> str:
    """Mastery as a whole percentage, e.g. "21%"."""
    return f"{math.floor(calculate_mastery(state) * 100 + 0.5)}%"


def days_until_due(state: SpacedRepetitionState, now: datetime | None = None) -> int:
    now = now or utc_now()
    if state.due_date is None:
        return 0
    return math.floor((state.due_date - now).total_seconds() / SECONDS_PER_DAY)


def priority_score(state: SpacedRepetitionState, now: datetime | None = None) -> float:
    """
    Sort key for review lists, higher is more urgent.

    Overdue items score 100 plus 10 per day overdue, items due within a
    day score 80, within a week 50 minus 2 per day, later items fade
    toward 0.
    """
    days = days_until_due(state, now)

    if days <= 0:
        return 100 + abs(days) * 10
    if days <= 1:
        return 80
    if days <= 7:
        return 50 - days * 2
    return max(0, 20 - days)


def algorithm_display_name(algorithm: Algorithm | str) -> str:
    resolved = Algorithm.from_tag(algorithm)
    if resolved is None:
        return str(algorithm)
    return _ALGORITHM_NAMES[resolved]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''}"


def format_interval(interval: int) -> str:
    if interval < 1:
        return "Today"
    if interval == 1:
        return "1 day"
    if interval < 7:
        return f"{interval} days"
    if interval < 30:
        return _plural(interval // 7, "week")
    if interval < 365:
        return _plural(interval // 30, "month")
    return _plural(interval // 365, "year")


def stability_description(stability: float) -> str:
    if stability < 1:
        return "Very Unstable"
    if stability < 7:
        return "Unstable"
    if stability < 30:
        return "Moderate"
    if stability < 90:
        return "Stable"
    if stability < 365:
        return "Very Stable"
    return "Mastered"


def difficulty_description(difficulty: float) -> str:
    # Lower is easier
    if difficulty < 0.3:
        return "Easy"
    if difficulty < 0.5:
        return "Moderate"
    if difficulty < 0.7:
        return "Hard"
    return "Very Hard"


def describe_state(
    state: SpacedRepetitionState,
    algorithm: Algorithm | str,
    now: datetime | None = None,
) -> dict:
    """
    Flatten a state into display-ready fields.

    FSRS-specific fields are only included when an FSRS sub-state exists.
    """
    summary = {
        "algorithm": algorithm_display_name(algorithm),
        "interval": format_interval(state.interval),
        "mastery": format_mastery_level(state),
        "priority": priority_score(state, now),
        "due_date": state.due_date.isoformat() if state.due_date else None,
        "repetitions": state.repetition_count,
    }
    if state.leitner_box is not None:
        summary["leitner_box"] = state.leitner_box
    if state.fsrs_state is not None:
        fsrs = state.fsrs_state
        summary["phase"] = fsrs_phase_label(fsrs.state)
        summary["stability"] = stability_description(fsrs.stability)
        summary["difficulty"] = difficulty_description(fsrs.difficulty)
        summary["lapses"] = fsrs.lapses
    return summary
