"""
Ports (interfaces) for progress persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import ProgressKey, ProgressRecord


class ProgressRepository(ABC):
    """
    Port for loading and storing progress records.

    Implementations:
        - InMemoryProgressRepository: Process-local dict, used by tests and the server.
        - JsonFileProgressRepository: Single JSON document on disk.

    Callers must serialize updates for the same key; adapters do not
    arbitrate concurrent writers.
    """

    @abstractmethod
    async def get(self, key: ProgressKey) -> ProgressRecord | None:
        """
        Fetch the record for a (user, item, card index) key.

        Returns:
            The stored record, or None if the item has never been scheduled.
        """
        pass

    @abstractmethod
    async def save(self, record: ProgressRecord) -> None:
        """Insert or replace the record stored under ``record.key``."""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        """
        Fetch every record belonging to a user.

        Returns:
            Records in no particular order.
        """
        pass
