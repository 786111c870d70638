"""Tests for copying a trim into other model years."""

from __future__ import annotations

from uuid import uuid4

import pytest

from motocat.assignments.trims import copy_trim_to_years
from motocat.db.models import ConfigurationRow
from motocat.errors import NotFound
from motocat.models import ComponentType


@pytest.mark.asyncio
async def test_copies_components_and_overrides(session_factory, seed):
    engine_id = await seed.engine("Triple 765 RS")
    _, years = await seed.model("Street Triple", [2021, 2022, 2023])
    source_id = await seed.trim(years[2021], "RS", engine=(engine_id, True))

    async with session_factory() as session:
        result = await copy_trim_to_years(session, source_id, [years[2022], years[2023]])
        await session.commit()

    assert len(result.created) == 2
    assert result.existing == []
    async with session_factory() as session:
        for created_id in result.created:
            row = await session.get(ConfigurationRow, created_id)
            assert row.name == "RS"
            assert row.component_slot(ComponentType.ENGINE) == (engine_id, True)


@pytest.mark.asyncio
async def test_skips_source_year_and_same_named_trims(session_factory, seed):
    _, years = await seed.model("Street Triple", [2021, 2022])
    source_id = await seed.trim(years[2021], "RS")
    already_there = await seed.trim(years[2022], "RS")

    async with session_factory() as session:
        result = await copy_trim_to_years(session, source_id, [years[2021], years[2022]])
        await session.commit()

    assert result.created == []
    assert result.existing == [source_id, already_there]


@pytest.mark.asyncio
async def test_unknown_target_year(session_factory, seed):
    _, years = await seed.model("Street Triple", [2021])
    source_id = await seed.trim(years[2021], "RS")

    async with session_factory() as session:
        with pytest.raises(NotFound):
            await copy_trim_to_years(session, source_id, [uuid4()])
