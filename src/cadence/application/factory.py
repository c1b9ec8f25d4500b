"""
Repository Factory
Centralizes the logic for selecting the progress store adapter.
"""

from cadence.application.config import AppConfig
from cadence.application.review_service import ReviewService
from cadence.domain.ports import ProgressRepository
from cadence.infrastructure.adapters import (
    InMemoryProgressRepository,
    JsonFileProgressRepository,
)


def get_progress_repository(config: AppConfig) -> ProgressRepository:
    """
    Returns the ProgressRepository implementation selected by config.
    """
    if config.store_backend == "memory":
        return InMemoryProgressRepository()
    return JsonFileProgressRepository(config.store_path)


def get_review_service(config: AppConfig) -> ReviewService:
    return ReviewService(get_progress_repository(config), config)
