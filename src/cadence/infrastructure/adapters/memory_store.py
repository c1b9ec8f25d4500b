"""
In-memory Progress Repository — process-local adapter.

Used by tests, the HTTP server's memory backend and one-off CLI runs.
"""

from cadence.domain.models import ProgressKey, ProgressRecord
from cadence.domain.ports import ProgressRepository


class InMemoryProgressRepository(ProgressRepository):
    def __init__(self, records: list[ProgressRecord] | None = None):
        self._records: dict[ProgressKey, ProgressRecord] = {}
        for record in records or []:
            self._records[record.key] = record

    async def get(self, key: ProgressKey) -> ProgressRecord | None:
        return self._records.get(key)

    async def save(self, record: ProgressRecord) -> None:
        self._records[record.key] = record

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        return [r for r in self._records.values() if r.user_id == user_id]

    def __len__(self) -> int:
        return len(self._records)
