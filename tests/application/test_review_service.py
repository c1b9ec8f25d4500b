"""Tests for ReviewService against the in-memory repository."""

from datetime import timedelta

import pytest

from cadence.application.config import AppConfig
from cadence.application.review_service import ReviewService
from cadence.application.scheduler import calculate_mastery
from cadence.domain.exceptions import ProgressNotFoundError
from cadence.domain.models import Algorithm, FsrsPhase, ProgressKey, ReviewResult

KEY = ProgressKey("ada", "deck-1", 0)


@pytest.mark.asyncio
async def test_first_review_creates_record(service, memory_repo, now):
    record = await service.record_review(KEY, ReviewResult(3, True, 7.5), now=now)

    assert record.id.startswith("progress_")
    assert record.algorithm == Algorithm.FSRS
    assert record.study_sessions == 1
    assert record.confidence == 3
    assert record.elo.rating == 1516
    assert len(record.elo.history) == 1
    assert record.performance[0].time_spent == 7.5
    assert record.mastery_level == pytest.approx(calculate_mastery(record.state))
    assert record.created_at == now
    assert await memory_repo.get(KEY) == record


@pytest.mark.asyncio
async def test_review_accumulates(service, now):
    await service.record_review(KEY, ReviewResult(4, True), now=now)
    record = await service.record_review(KEY, ReviewResult(4, True), now=now + timedelta(days=1))

    assert record.study_sessions == 2
    assert record.state.fsrs_state.state == FsrsPhase.REVIEW
    assert len(record.performance) == 2
    assert record.updated_at == now + timedelta(days=1)


@pytest.mark.asyncio
async def test_out_of_range_confidence_is_clamped(service, now):
    record = await service.record_review(KEY, ReviewResult(9, True, -1), now=now)

    assert record.confidence == 5
    assert record.performance[0].time_spent == 0.0


@pytest.mark.asyncio
async def test_default_algorithm_from_config(memory_repo, mock_home, now):
    service = ReviewService(memory_repo, AppConfig(default_algorithm="SM-2"))
    record = await service.record_review(KEY, ReviewResult(5, True), now=now)

    assert record.algorithm == Algorithm.SM2
    assert record.state.fsrs_state is None
    assert record.state.ease_factor == pytest.approx(2.6)


@pytest.mark.asyncio
async def test_fixed_k_factor_from_config(memory_repo, mock_home, now):
    config = AppConfig(elo_k_factor=16, dynamic_k_factor=False)
    service = ReviewService(memory_repo, config)
    record = await service.record_review(KEY, ReviewResult(3, True), now=now)

    assert record.elo.rating == 1508


@pytest.mark.asyncio
async def test_history_limit(memory_repo, mock_home, now):
    service = ReviewService(memory_repo, AppConfig(history_limit=2))
    for day in range(4):
        record = await service.record_review(
            KEY, ReviewResult(day + 1, True), now=now + timedelta(days=day)
        )

    assert len(record.performance) == 2
    assert [p.confidence for p in record.performance] == [3, 4]
    assert record.study_sessions == 4


class TestStartTracking:
    @pytest.mark.asyncio
    async def test_creates_with_requested_algorithm(self, service, now):
        record = await service.start_tracking(KEY, "Leitner", now=now)

        assert record.algorithm == Algorithm.LEITNER
        assert record.state.leitner_box == 1
        assert record.study_sessions == 0
        assert record.due_date == now + timedelta(days=1)

    @pytest.mark.asyncio
    async def test_existing_record_is_untouched(self, service, now):
        first = await service.start_tracking(KEY, "SM-2", now=now)
        again = await service.start_tracking(KEY, "Leitner", now=now + timedelta(days=3))

        assert again == first


class TestGetProgress:
    @pytest.mark.asyncio
    async def test_missing(self, service):
        with pytest.raises(ProgressNotFoundError):
            await service.get_progress(KEY)


class TestSwitchAlgorithm:
    @pytest.mark.asyncio
    async def test_missing(self, service):
        with pytest.raises(ProgressNotFoundError):
            await service.switch_algorithm(KEY, "SM-2")

    @pytest.mark.asyncio
    async def test_keeps_other_substates(self, service, now):
        await service.record_review(KEY, ReviewResult(4, True), now=now)
        before = await service.get_progress(KEY)

        switched = await service.switch_algorithm(KEY, "Leitner", now=now)
        assert switched.algorithm == Algorithm.LEITNER
        assert switched.state == before.state

        after = await service.record_review(KEY, ReviewResult(4, True), now=now)
        assert after.state.leitner_box == 2
        assert after.state.fsrs_state == before.state.fsrs_state

    @pytest.mark.asyncio
    async def test_unknown_tag_falls_back_to_fsrs(self, service, now):
        await service.start_tracking(KEY, "SM-2", now=now)
        record = await service.switch_algorithm(KEY, "mystery", now=now)
        assert record.algorithm == Algorithm.FSRS


class TestDue:
    @pytest.mark.asyncio
    async def test_nothing_due_yet(self, service, now):
        await service.start_tracking(KEY, now=now)
        assert await service.get_due("ada", now=now) == []

    @pytest.mark.asyncio
    async def test_due_sorted_and_limited(self, service, now):
        for offset, item in enumerate(["a", "b", "c"]):
            await service.start_tracking(
                ProgressKey("ada", item), now=now - timedelta(days=offset)
            )
        await service.start_tracking(ProgressKey("bob", "z"), now=now - timedelta(days=9))

        due = await service.get_due("ada", now=now + timedelta(days=1))
        assert [r.item_id for r in due] == ["c", "b", "a"]

        limited = await service.get_due("ada", now=now + timedelta(days=1), limit=2)
        assert [r.item_id for r in limited] == ["c", "b"]

    @pytest.mark.asyncio
    async def test_next_review(self, service, now):
        assert await service.next_review("ada", now=now) is None

        await service.start_tracking(ProgressKey("ada", "later"), now=now + timedelta(days=3))
        await service.start_tracking(ProgressKey("ada", "soon"), now=now)

        record = await service.next_review("ada", now=now)
        assert record.item_id == "soon"


@pytest.mark.asyncio
async def test_elo_trend(service, now):
    await service.record_review(KEY, ReviewResult(1, True), now=now)
    record = await service.record_review(KEY, ReviewResult(1, True), now=now)

    # 1529 -> 1558
    assert service.elo_trend(record) == pytest.approx(29 / 500)


@pytest.mark.asyncio
async def test_zero_limit_returns_nothing(service, now):
    await service.start_tracking(KEY, now=now)
    assert await service.get_due("ada", now=now + timedelta(days=2), limit=0) == []
