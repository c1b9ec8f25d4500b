import pytest

from cadence.application.scheduler import initialize_state
from cadence.domain.models import Algorithm, ProgressKey, ProgressRecord
from cadence.infrastructure.adapters import InMemoryProgressRepository


def _record(user, item, now, index=0):
    return ProgressRecord(
        id=f"progress_{user}_{item}_{index}",
        user_id=user,
        item_id=item,
        card_index=index,
        algorithm=Algorithm.FSRS,
        state=initialize_state(now=now),
    )


@pytest.mark.asyncio
async def test_seeded_records(now):
    repo = InMemoryProgressRepository([_record("ada", "a", now), _record("bob", "b", now)])

    assert len(repo) == 2
    assert (await repo.get(ProgressKey("ada", "a"))).id == "progress_ada_a_0"
    assert await repo.get(ProgressKey("ada", "b")) is None


@pytest.mark.asyncio
async def test_card_index_is_part_of_the_key(now):
    repo = InMemoryProgressRepository()
    await repo.save(_record("ada", "a", now, index=0))
    await repo.save(_record("ada", "a", now, index=1))
    await repo.save(_record("ada", "a", now, index=1))

    assert len(repo) == 2
    assert len(await repo.list_for_user("ada")) == 2
    assert await repo.list_for_user("bob") == []
