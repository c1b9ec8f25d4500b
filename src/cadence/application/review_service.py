"""
Review Service — Application layer orchestrator.

Loads progress through the repository port, runs the scheduling and
ELO engines against a review event, and writes the result back.
"""

import logging
from dataclasses import replace
from datetime import datetime

from cadence.domain.exceptions import ProgressNotFoundError
from cadence.domain.models import (
    Algorithm,
    EloState,
    PerformanceEntry,
    ProgressKey,
    ProgressRecord,
    ReviewResult,
)
from cadence.domain.ports import ProgressRepository

from . import elo
from .config import AppConfig
from .engines.base import utc_now
from .id_service import generate_progress_id
from .scheduler import (
    calculate_mastery,
    get_next_review,
    initialize_state,
    resolve_algorithm,
    update_spaced_repetition,
)

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service for scheduling reviews of tracked items.

    Follows Dependency Inversion: depends on the ProgressRepository
    abstraction, not concrete adapter implementations. Callers must not
    run two reviews of the same key concurrently.
    """

    def __init__(self, repository: ProgressRepository, config: AppConfig | None = None):
        """
        Args:
            repository: The repository (port) holding progress records.
            config: Optional settings; defaults are used if not provided.
        """
        self._repo = repository
        self._config = config or AppConfig()

    def _new_record(
        self, key: ProgressKey, algorithm: Algorithm | str | None, now: datetime
    ) -> ProgressRecord:
        resolved = resolve_algorithm(algorithm or self._config.default_algorithm)
        state = initialize_state(resolved, now)
        return ProgressRecord(
            id=generate_progress_id(),
            user_id=key.user_id,
            item_id=key.item_id,
            card_index=key.card_index,
            algorithm=resolved,
            state=state,
            elo=EloState(rating=elo.initialize_elo()),
            mastery_level=calculate_mastery(state),
            created_at=now,
            updated_at=now,
        )

    async def start_tracking(
        self,
        key: ProgressKey,
        algorithm: Algorithm | str | None = None,
        now: datetime | None = None,
    ) -> ProgressRecord:
        """
        Return the record for ``key``, creating it on first use.

        An existing record is returned untouched, whatever ``algorithm`` says.
        """
        existing = await self._repo.get(key)
        if existing is not None:
            return existing

        record = self._new_record(key, algorithm, now or utc_now())
        await self._repo.save(record)
        logger.info(
            f"Tracking {key.item_id}[{key.card_index}] for {key.user_id} "
            f"with {record.algorithm.value}"
        )
        return record

    async def get_progress(self, key: ProgressKey) -> ProgressRecord:
        record = await self._repo.get(key)
        if record is None:
            raise ProgressNotFoundError(key)
        return record

    async def record_review(
        self,
        key: ProgressKey,
        result: ReviewResult,
        now: datetime | None = None,
    ) -> ProgressRecord:
        """
        Apply one review event to an item.

        Items reviewed for the first time are initialized with the
        configured default algorithm. The scheduling update and the ELO
        update both consume the same (normalized) event.

        Returns:
            The saved record.
        """
        now = now or utc_now()
        result = result.normalized()

        record = await self._repo.get(key)
        if record is None:
            record = self._new_record(key, None, now)

        state = update_spaced_repetition(record.state, result, record.algorithm, now)
        elo_state = elo.record_elo_review(
            record.elo,
            result.confidence,
            result.correct,
            k_factor=self._config.elo_k_factor,
            dynamic=self._config.dynamic_k_factor,
            now=now,
        )

        entry = PerformanceEntry(
            timestamp=now,
            confidence=result.confidence,
            correct=result.correct,
            time_spent=result.time_spent,
            ease_factor=state.ease_factor,
            interval=state.interval,
        )
        performance = record.performance + (entry,)
        limit = self._config.history_limit
        if limit and len(performance) > limit:
            performance = performance[-limit:]

        updated = replace(
            record,
            state=state,
            elo=elo_state,
            mastery_level=calculate_mastery(state),
            study_sessions=record.study_sessions + 1,
            confidence=result.confidence,
            performance=performance,
            updated_at=now,
        )
        await self._repo.save(updated)

        logger.debug(
            f"Reviewed {key.item_id}[{key.card_index}] for {key.user_id}: "
            f"correct={result.correct} confidence={result.confidence} "
            f"interval={state.interval} elo={elo_state.rating}"
        )
        return updated

    async def switch_algorithm(
        self,
        key: ProgressKey,
        algorithm: Algorithm | str,
        now: datetime | None = None,
    ) -> ProgressRecord:
        """
        Change the algorithm driving an item.

        Only the tag changes. Substates left by other algorithms are kept
        so switching back resumes where it left off.
        """
        record = await self.get_progress(key)
        resolved = resolve_algorithm(algorithm)
        if resolved == record.algorithm:
            return record

        updated = replace(record, algorithm=resolved, updated_at=now or utc_now())
        await self._repo.save(updated)
        logger.info(
            f"Switched {key.item_id}[{key.card_index}] for {key.user_id} "
            f"from {record.algorithm.value} to {resolved.value}"
        )
        return updated

    async def get_due(
        self,
        user_id: str,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[ProgressRecord]:
        """
        Records whose due date has passed, longest overdue first.
        """
        now = now or utc_now()
        records = await self._repo.list_for_user(user_id)
        due = sorted(
            (r for r in records if r.due_date is not None and r.due_date <= now),
            key=lambda r: r.due_date,
        )
        return due[:limit] if limit is not None else due

    async def next_review(
        self, user_id: str, now: datetime | None = None
    ) -> ProgressRecord | None:
        records = await self._repo.list_for_user(user_id)
        return get_next_review(
            [r for r in records if r.due_date is not None], now=now
        )

    def elo_trend(self, record: ProgressRecord) -> float:
        return elo.calculate_elo_trend(record.elo.history, self._config.elo_trend_window)
