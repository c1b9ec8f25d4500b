# Application Package
from .review_service import ReviewService
from .scheduler import (
    calculate_due_date,
    calculate_mastery,
    get_next_review,
    initialize_state,
    update_spaced_repetition,
)

__all__ = [
    "ReviewService",
    "calculate_due_date",
    "calculate_mastery",
    "get_next_review",
    "initialize_state",
    "update_spaced_repetition",
]
