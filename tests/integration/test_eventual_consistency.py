"""Cached views converge after a write when invalidation runs in the background.

A reader racing the write may still see the old view; the test only requires
that the fresh value shows up within a bounded number of polls.
"""

from __future__ import annotations

import asyncio

import pytest

from motocat.assignments.service import AssignmentService
from motocat.cache.backends import InMemoryQueryCache
from motocat.models import ComponentType, ResolutionSource


async def _poll_engine(service, year_id, expected, attempts: int = 50):
    for _ in range(attempts):
        views = await service.configurations_for_year(year_id)
        if views[0].components[ComponentType.ENGINE].component_id == expected:
            return views[0]
        await asyncio.sleep(0.01)
    raise AssertionError(f"view for {year_id} never showed {expected}")


@pytest.mark.asyncio
async def test_year_view_converges_after_assign(session_factory, seed):
    service = AssignmentService(
        session_factory, InMemoryQueryCache(prefix="ec"), background_invalidation=True
    )
    engine_id = await seed.engine("Triple 765")
    model_id, years = await seed.model("Street Triple", [2021])
    await seed.trim(years[2021], "R")

    stale = await service.configurations_for_year(years[2021])
    assert stale[0].components[ComponentType.ENGINE].source == ResolutionSource.NONE

    await service.assign(ComponentType.ENGINE, engine_id, [model_id])

    fresh = await _poll_engine(service, years[2021], engine_id)
    assert fresh.components[ComponentType.ENGINE].source == ResolutionSource.MODEL
    await service.close()


@pytest.mark.asyncio
async def test_direct_resolution_is_never_stale(session_factory, seed):
    service = AssignmentService(
        session_factory, InMemoryQueryCache(prefix="ec"), background_invalidation=True
    )
    engine_id = await seed.engine("Triple 765")
    model_id, years = await seed.model("Street Triple", [2021])
    trim_id = await seed.trim(years[2021], "R")
    await service.configurations_for_year(years[2021])

    await service.assign(ComponentType.ENGINE, engine_id, [model_id])

    # resolve() reads the store, not the cache
    resolution = await service.resolve(trim_id, ComponentType.ENGINE)
    assert resolution.component_id == engine_id
    await service.close()
