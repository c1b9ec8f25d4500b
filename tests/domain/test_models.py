from dataclasses import FrozenInstanceError

import pytest

from cadence.domain.exceptions import CadenceError, ProgressNotFoundError
from cadence.domain.models import Algorithm, ProgressKey, ReviewResult, SpacedRepetitionState


class TestAlgorithm:
    @pytest.mark.parametrize(
        "tag, expected",
        [
            ("FSRS", Algorithm.FSRS),
            ("fsrs", Algorithm.FSRS),
            ("SM-2", Algorithm.SM2),
            ("sm2", Algorithm.SM2),
            ("Sm_2", Algorithm.SM2),
            (" leitner ", Algorithm.LEITNER),
            (Algorithm.LEITNER, Algorithm.LEITNER),
        ],
    )
    def test_from_tag(self, tag, expected):
        assert Algorithm.from_tag(tag) is expected

    @pytest.mark.parametrize("tag", ["", "mnemosyne", None, 3])
    def test_unknown(self, tag):
        assert Algorithm.from_tag(tag) is None

    def test_value_is_the_stored_tag(self):
        assert Algorithm.SM2.value == "SM-2"
        assert Algorithm.SM2 == "SM-2"


class TestReviewResult:
    def test_in_range_is_unchanged(self):
        result = ReviewResult(4, True, 12.5)
        assert result.normalized() is result

    def test_clamps_confidence_and_time(self):
        result = ReviewResult(0, False, -3).normalized()
        assert result.confidence == 1
        assert result.time_spent == 0.0

        assert ReviewResult(11, True).normalized().confidence == 5


def test_state_defaults():
    state = SpacedRepetitionState()
    assert state.interval == 1
    assert state.ease_factor == 2.5
    assert state.repetition_count == 0
    assert state.due_date is None


def test_state_is_frozen():
    with pytest.raises(FrozenInstanceError):
        SpacedRepetitionState().interval = 5


def test_not_found_message():
    error = ProgressNotFoundError(ProgressKey("ada", "deck-1", 2))
    assert isinstance(error, CadenceError)
    assert str(error) == "No progress for user=ada item=deck-1 card=2"
    assert error.key.card_index == 2
