from datetime import datetime, timezone

import pytest

from cadence.application.review_service import ReviewService
from cadence.infrastructure.adapters import InMemoryProgressRepository


@pytest.fixture
def now():
    """A fixed, timezone-aware reference time."""
    return datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the progress store
    monkeypatch.setenv("HOME", str(home))
    for var in ("CADENCE_DEFAULT_ALGORITHM", "CADENCE_STORE_BACKEND", "CADENCE_STORE_PATH"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def memory_repo():
    return InMemoryProgressRepository()


@pytest.fixture
def service(memory_repo, mock_home):
    return ReviewService(memory_repo)
