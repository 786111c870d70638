"""Tests for BulkAssignmentCoordinator.

Every target gets its own outcome; a failing target never rolls back the
others.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from motocat.assignments.bulk import BulkAssignmentCoordinator
from motocat.assignments.store import AssignmentStore
from motocat.db.models import ConfigurationRow
from motocat.errors import InvalidWindowError, NotFound
from motocat.models import AssignmentStatus, ComponentType


@pytest.fixture
def coordinator(session_factory) -> BulkAssignmentCoordinator:
    return BulkAssignmentCoordinator(session_factory, max_parallel=3)


def test_rejects_non_positive_parallelism(session_factory):
    with pytest.raises(ValueError):
        BulkAssignmentCoordinator(session_factory, max_parallel=0)


@pytest.mark.asyncio
async def test_assign_to_many_models(coordinator, session_factory, seed):
    engine_id = await seed.engine("Parallel twin 1200")
    model_ids = [(await seed.model(f"Model {n}"))[0] for n in range(6)]

    result = await coordinator.assign(ComponentType.ENGINE, engine_id, model_ids)

    assert result.summary == "6 of 6 succeeded"
    assert [outcome.model_id for outcome in result.results] == model_ids
    async with session_factory() as session:
        store = AssignmentStore(session)
        for model_id in model_ids:
            assignment = await store.get_assignment(model_id, ComponentType.ENGINE)
            assert assignment.component_id == engine_id


@pytest.mark.asyncio
async def test_partial_failure_keeps_successful_writes(coordinator, session_factory, seed):
    engine_id = await seed.engine("Triple 765")
    good_a, _ = await seed.model("Street Triple")
    good_b, _ = await seed.model("Tiger Sport")
    missing = uuid4()

    result = await coordinator.assign(ComponentType.ENGINE, engine_id, [good_a, missing, good_b])

    assert len(result.results) == 3
    assert [o.model_id for o in result.succeeded] == [good_a, good_b]
    assert [o.model_id for o in result.failed] == [missing]
    assert result.failed[0].status == AssignmentStatus.ERROR
    assert "model not found" in result.failed[0].error
    async with session_factory() as session:
        store = AssignmentStore(session)
        assert await store.get_assignment(good_a, ComponentType.ENGINE) is not None
        assert await store.get_assignment(good_b, ComponentType.ENGINE) is not None
        assert await store.get_assignment(missing, ComponentType.ENGINE) is None


@pytest.mark.asyncio
async def test_missing_component_fails_every_target(coordinator, session_factory, seed):
    model_a, _ = await seed.model("Street Triple")
    model_b, _ = await seed.model("Speed Twin")

    result = await coordinator.assign(ComponentType.ENGINE, uuid4(), [model_a, model_b])

    assert result.succeeded == []
    assert len(result.failed) == 2
    async with session_factory() as session:
        assert await AssignmentStore(session).get_assignment(model_a, ComponentType.ENGINE) is None


@pytest.mark.asyncio
async def test_duplicate_targets_collapse(coordinator, seed):
    engine_id = await seed.engine("Triple 765")
    model_id, _ = await seed.model("Street Triple")

    result = await coordinator.assign(ComponentType.ENGINE, engine_id, [model_id, model_id])

    assert len(result.results) == 1
    assert result.results[0].ok


@pytest.mark.asyncio
async def test_empty_target_list(coordinator):
    result = await coordinator.assign(ComponentType.ENGINE, uuid4(), [])

    assert result.results == []
    assert result.summary == "0 of 0 succeeded"


@pytest.mark.asyncio
async def test_inverted_window_writes_nothing(coordinator, session_factory, seed):
    engine_id = await seed.engine("Triple 765")
    model_id, _ = await seed.model("Street Triple")

    with pytest.raises(InvalidWindowError):
        await coordinator.assign(
            ComponentType.ENGINE,
            engine_id,
            [model_id],
            effective_from_year=2024,
            effective_to_year=2020,
        )

    async with session_factory() as session:
        assert await AssignmentStore(session).get_assignment(model_id, ComponentType.ENGINE) is None


@pytest.mark.asyncio
async def test_remove_missing_assignment_is_ok(coordinator, seed):
    model_id, _ = await seed.model("Street Triple")

    assert await coordinator.remove(model_id, ComponentType.ENGINE) is False


@pytest.mark.asyncio
async def test_set_trim_override_checks_component(coordinator, session_factory, seed):
    _, years = await seed.model("Street Triple", [2021])
    trim_id = await seed.trim(years[2021], "RS")

    with pytest.raises(NotFound):
        await coordinator.set_trim_override(trim_id, ComponentType.ENGINE, uuid4())

    async with session_factory() as session:
        row = await session.get(ConfigurationRow, trim_id)
        assert row.component_slot(ComponentType.ENGINE) == (None, False)
