"""Stable identifiers for progress records."""

from ulid import ULID


def generate_progress_id() -> str:
    """Generate a sortable progress record ID using ULID."""
    return f"progress_{ULID()}"
