"""
Conversion between domain records and JSON-compatible dicts.

Timestamps are stored as ISO-8601 strings. Naive timestamps read back
from older documents are assumed to be UTC.
"""

from datetime import datetime, timezone
from typing import Any

from cadence.domain.constants import DEFAULT_ELO
from cadence.domain.models import (
    Algorithm,
    EloHistoryEntry,
    EloState,
    FsrsPhase,
    FsrsState,
    PerformanceEntry,
    ProgressRecord,
    SpacedRepetitionState,
)


def _dump_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def state_to_dict(state: SpacedRepetitionState) -> dict[str, Any]:
    fsrs = state.fsrs_state
    return {
        "interval": state.interval,
        "ease_factor": state.ease_factor,
        "repetition_count": state.repetition_count,
        "due_date": _dump_dt(state.due_date),
        "last_studied": _dump_dt(state.last_studied),
        "leitner_box": state.leitner_box,
        "fsrs_state": (
            {
                "stability": fsrs.stability,
                "difficulty": fsrs.difficulty,
                "last_review": _dump_dt(fsrs.last_review),
                "reps": fsrs.reps,
                "lapses": fsrs.lapses,
                "state": int(fsrs.state),
            }
            if fsrs is not None
            else None
        ),
    }


def state_from_dict(data: dict[str, Any]) -> SpacedRepetitionState:
    fsrs_data = data.get("fsrs_state")
    fsrs = None
    if fsrs_data:
        fsrs = FsrsState(
            stability=float(fsrs_data["stability"]),
            difficulty=float(fsrs_data["difficulty"]),
            last_review=(
                _load_dt(fsrs_data.get("last_review")) or _load_dt(data.get("last_studied"))
            ),
            reps=int(fsrs_data.get("reps", 0)),
            lapses=int(fsrs_data.get("lapses", 0)),
            state=FsrsPhase(int(fsrs_data.get("state", 0))),
        )

    box = data.get("leitner_box")
    return SpacedRepetitionState(
        interval=int(data.get("interval", 1)),
        ease_factor=float(data.get("ease_factor", 2.5)),
        repetition_count=int(data.get("repetition_count", 0)),
        due_date=_load_dt(data.get("due_date")),
        last_studied=_load_dt(data.get("last_studied")),
        leitner_box=int(box) if box is not None else None,
        fsrs_state=fsrs,
    )


def record_to_dict(record: ProgressRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "item_id": record.item_id,
        "card_index": record.card_index,
        "algorithm": record.algorithm.value,
        "state": state_to_dict(record.state),
        "elo": {
            "rating": record.elo.rating,
            "history": [
                {
                    "timestamp": _dump_dt(h.timestamp),
                    "rating": h.rating,
                    "confidence": h.confidence,
                    "correct": h.correct,
                }
                for h in record.elo.history
            ],
        },
        "mastery_level": record.mastery_level,
        "study_sessions": record.study_sessions,
        "confidence": record.confidence,
        "performance": [
            {
                "timestamp": _dump_dt(p.timestamp),
                "confidence": p.confidence,
                "correct": p.correct,
                "time_spent": p.time_spent,
                "ease_factor": p.ease_factor,
                "interval": p.interval,
            }
            for p in record.performance
        ],
        "created_at": _dump_dt(record.created_at),
        "updated_at": _dump_dt(record.updated_at),
    }


def record_from_dict(data: dict[str, Any]) -> ProgressRecord:
    elo_data = data.get("elo") or {}
    history = tuple(
        EloHistoryEntry(
            timestamp=_load_dt(h["timestamp"]),
            rating=h["rating"],
            confidence=h["confidence"],
            correct=h["correct"],
        )
        for h in elo_data.get("history", [])
    )
    performance = tuple(
        PerformanceEntry(
            timestamp=_load_dt(p["timestamp"]),
            confidence=p["confidence"],
            correct=p["correct"],
            time_spent=p.get("time_spent", 0.0),
            ease_factor=p.get("ease_factor"),
            interval=p.get("interval"),
        )
        for p in data.get("performance", [])
    )

    return ProgressRecord(
        id=data["id"],
        user_id=data["user_id"],
        item_id=data["item_id"],
        card_index=int(data.get("card_index", 0)),
        # Unknown tags fall back to FSRS, same as the dispatcher
        algorithm=Algorithm.from_tag(data.get("algorithm")) or Algorithm.FSRS,
        state=state_from_dict(data["state"]),
        elo=EloState(rating=elo_data.get("rating", DEFAULT_ELO), history=history),
        mastery_level=float(data.get("mastery_level", 0.0)),
        study_sessions=int(data.get("study_sessions", 0)),
        confidence=data.get("confidence"),
        performance=performance,
        created_at=_load_dt(data.get("created_at")),
        updated_at=_load_dt(data.get("updated_at")),
    )
