"""Exception hierarchy for Cadence."""

from .models import ProgressKey


class CadenceError(Exception):
    """Base class for errors raised outside the pure scheduling engines."""


class ProgressNotFoundError(CadenceError):
    def __init__(self, key: ProgressKey):
        self.key = key
        super().__init__(
            f"No progress for user={key.user_id} item={key.item_id} card={key.card_index}"
        )


class StoreError(CadenceError):
    """The progress store could not be read or written."""
