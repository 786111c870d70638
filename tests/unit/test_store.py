"""Tests for AssignmentStore persistence rules."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from motocat.assignments.store import AssignmentStore
from motocat.db.models import ConfigurationRow, ModelComponentAssignmentRow
from motocat.errors import NotFound
from motocat.models import ComponentType


@pytest.mark.asyncio
async def test_upsert_keeps_one_row_per_model_and_type(session_factory, seed):
    first = await seed.engine("Triple 675")
    second = await seed.engine("Triple 765")
    model_id, _ = await seed.model("Street Triple")

    async with session_factory() as session:
        store = AssignmentStore(session)
        await store.upsert_assignment(model_id, ComponentType.ENGINE, first)
        await store.upsert_assignment(
            model_id, ComponentType.ENGINE, second, effective_from_year=2017, notes="765 update"
        )
        await session.commit()

    async with session_factory() as session:
        count = (
            await session.execute(
                select(func.count()).select_from(ModelComponentAssignmentRow)
            )
        ).scalar_one()
        assignment = await AssignmentStore(session).get_assignment(model_id, ComponentType.ENGINE)

    assert count == 1
    assert assignment.component_id == second
    assert assignment.effective_from_year == 2017
    assert assignment.notes == "765 update"


@pytest.mark.asyncio
async def test_delete_assignment_is_idempotent(session_factory, seed):
    engine_id = await seed.engine("Triple 765")
    model_id, _ = await seed.model("Street Triple")
    await seed.assignment(model_id, ComponentType.ENGINE, engine_id)

    async with session_factory() as session:
        store = AssignmentStore(session)
        assert await store.delete_assignment(model_id, ComponentType.ENGINE) is True
        assert await store.delete_assignment(model_id, ComponentType.ENGINE) is False
        await session.commit()


@pytest.mark.asyncio
async def test_set_override_writes_id_and_flag_together(session_factory, seed):
    engine_id = await seed.engine("Triple 765")
    _, years = await seed.model("Street Triple", [2021])
    trim_id = await seed.trim(years[2021], "RS")

    async with session_factory() as session:
        model_year_id = await AssignmentStore(session).set_override(
            trim_id, ComponentType.ENGINE, engine_id
        )
        await session.commit()

    assert model_year_id == years[2021]
    async with session_factory() as session:
        row = await session.get(ConfigurationRow, trim_id)
        assert row.component_slot(ComponentType.ENGINE) == (engine_id, True)

    async with session_factory() as session:
        await AssignmentStore(session).set_override(trim_id, ComponentType.ENGINE, None)
        await session.commit()

    async with session_factory() as session:
        row = await session.get(ConfigurationRow, trim_id)
        assert row.component_slot(ComponentType.ENGINE) == (None, False)


@pytest.mark.asyncio
async def test_set_override_unknown_configuration(session_factory):
    async with session_factory() as session:
        with pytest.raises(NotFound):
            await AssignmentStore(session).set_override(uuid4(), ComponentType.ENGINE, None)


@pytest.mark.asyncio
async def test_list_assignments_ordered_by_type(session_factory, seed):
    engine_id = await seed.engine("Triple 765")
    brakes_id = await seed.brake_system()
    model_id, _ = await seed.model("Street Triple")
    await seed.assignment(model_id, ComponentType.BRAKE_SYSTEM, brakes_id)
    await seed.assignment(model_id, ComponentType.ENGINE, engine_id)

    async with session_factory() as session:
        assignments = await AssignmentStore(session).list_assignments(model_id)

    assert [a.component_type for a in assignments] == [
        ComponentType.ENGINE,
        ComponentType.BRAKE_SYSTEM,
    ]


@pytest.mark.asyncio
async def test_list_assignments_unknown_model(session_factory):
    async with session_factory() as session:
        with pytest.raises(NotFound):
            await AssignmentStore(session).list_assignments(uuid4())


@pytest.mark.asyncio
async def test_linking_stats(session_factory, seed):
    engine_id = await seed.engine("Triple 765")
    brakes_id = await seed.brake_system()
    triple, _ = await seed.model("Street Triple")
    twin, _ = await seed.model("Speed Twin")
    await seed.assignment(triple, ComponentType.ENGINE, engine_id)
    await seed.assignment(twin, ComponentType.ENGINE, engine_id)
    await seed.assignment(twin, ComponentType.BRAKE_SYSTEM, brakes_id)

    async with session_factory() as session:
        stats = await AssignmentStore(session).linking_stats()

    assert stats.total_assignments == 3
    assert stats.assignments_by_type == {"engine": 2, "brake_system": 1}
    assert stats.models_with_components == 2
    assert stats.components_in_use == 2
