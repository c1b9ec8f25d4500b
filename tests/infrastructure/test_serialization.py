from datetime import timezone

from cadence.application.scheduler import initialize_state
from cadence.domain.models import Algorithm, FsrsPhase
from cadence.infrastructure.serialization import (
    record_from_dict,
    state_from_dict,
    state_to_dict,
)


def test_state_dict_shape(now):
    data = state_to_dict(initialize_state(now=now))

    assert data["due_date"] == "2026-03-03T09:30:00+00:00"
    assert data["leitner_box"] is None
    assert data["fsrs_state"]["state"] == 0
    assert data["fsrs_state"]["stability"] == 0.4


def test_state_round_trip(now):
    state = initialize_state("Leitner", now)
    assert state_from_dict(state_to_dict(state)) == state


def test_naive_timestamps_are_utc():
    state = state_from_dict(
        {
            "interval": 3,
            "due_date": "2025-11-02T08:00:00",
            "last_studied": "2025-10-30T08:00:00",
            "fsrs_state": {"stability": 2.5, "difficulty": 0.4, "state": 2},
        }
    )

    assert state.due_date.tzinfo == timezone.utc
    assert state.fsrs_state.state == FsrsPhase.REVIEW
    # Missing last_review is taken from last_studied
    assert state.fsrs_state.last_review == state.last_studied


def test_record_defaults_and_unknown_algorithm():
    record = record_from_dict(
        {
            "id": "progress_01",
            "user_id": "ada",
            "item_id": "deck-1",
            "algorithm": "SuperMemo-18",
            "state": {"interval": 1},
        }
    )

    assert record.algorithm == Algorithm.FSRS
    assert record.card_index == 0
    assert record.elo.rating == 1500
    assert record.elo.history == ()
    assert record.performance == ()
    assert record.created_at is None


def test_leitner_box_is_coerced_to_int():
    assert state_from_dict({"leitner_box": "3"}).leitner_box == 3
    assert state_from_dict({"leitner_box": 4.0}).leitner_box == 4
    assert state_from_dict({"leitner_box": None}).leitner_box is None
