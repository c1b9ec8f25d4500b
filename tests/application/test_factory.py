from cadence.application.config import AppConfig
from cadence.application.factory import get_progress_repository, get_review_service
from cadence.application.id_service import generate_progress_id
from cadence.infrastructure.adapters import (
    InMemoryProgressRepository,
    JsonFileProgressRepository,
)


def test_memory_backend(mock_home):
    repo = get_progress_repository(AppConfig(store_backend="memory"))
    assert isinstance(repo, InMemoryProgressRepository)


def test_json_backend(mock_home, tmp_path):
    path = tmp_path / "p.json"
    repo = get_progress_repository(AppConfig(store_path=path))

    assert isinstance(repo, JsonFileProgressRepository)
    assert repo.path == path


def test_review_service_uses_config(mock_home):
    config = AppConfig(store_backend="memory", elo_k_factor=10)
    service = get_review_service(config)
    assert service._config is config


def test_progress_ids_are_unique_and_prefixed():
    ids = {generate_progress_id() for _ in range(50)}

    assert len(ids) == 50
    assert all(i.startswith("progress_") and len(i) == len("progress_") + 26 for i in ids)
