"""Tests for CacheInvalidationCoordinator."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from motocat.cache.backends import InMemoryQueryCache
from motocat.cache.invalidation import CacheInvalidationCoordinator
from motocat.cache.keys import CacheKey, CacheNamespace


def test_plan_order():
    year_a, year_b, model_id = uuid4(), uuid4(), uuid4()

    plan = CacheInvalidationCoordinator.plan([year_a, year_b, year_a], [model_id])

    assert plan == [
        CacheKey.configurations(year_a),
        CacheKey.configurations(year_b),
        CacheNamespace.CONFIGURATIONS_MULTI,
        CacheNamespace.CONFIGURATIONS,
        CacheKey.model_assignments(model_id),
    ]


@pytest.mark.asyncio
async def test_redundant_invalidation_is_harmless():
    cache = InMemoryQueryCache()
    year_id = uuid4()
    await cache.set(CacheKey.configurations(year_id), ["view"])
    coordinator = CacheInvalidationCoordinator(cache, background=False)

    assert await coordinator.invalidate_after_mutation([year_id]) == 1
    assert await coordinator.invalidate_after_mutation([year_id]) == 0


@pytest.mark.asyncio
async def test_failures_are_swallowed_and_remaining_targets_still_run():
    cache = AsyncMock()
    cache.invalidate.side_effect = [RuntimeError("redis down"), 1, 1]
    coordinator = CacheInvalidationCoordinator(cache, background=False)

    removed = await coordinator.invalidate_after_mutation([uuid4()])

    assert removed == 2
    assert cache.invalidate.await_count == 3


@pytest.mark.asyncio
async def test_background_mode_returns_before_invalidating():
    release = asyncio.Event()
    cache = AsyncMock()

    async def slow_invalidate(target):
        await release.wait()
        return 1

    cache.invalidate.side_effect = slow_invalidate
    coordinator = CacheInvalidationCoordinator(cache, background=True)

    await coordinator.after_write([uuid4()])
    assert coordinator.pending == 1

    release.set()
    await coordinator.drain()
    assert coordinator.pending == 0
    assert cache.invalidate.await_count == 3


@pytest.mark.asyncio
async def test_synchronous_mode_invalidates_inline():
    cache = InMemoryQueryCache()
    year_id = uuid4()
    await cache.set(CacheKey.configurations(year_id), ["view"])
    coordinator = CacheInvalidationCoordinator(cache, background=False)

    await coordinator.after_write([year_id])

    assert coordinator.pending == 0
    assert await cache.get(CacheKey.configurations(year_id)) is None


@pytest.mark.asyncio
async def test_generation_moves_on_every_invalidation():
    coordinator = CacheInvalidationCoordinator(InMemoryQueryCache(), background=True)
    start = coordinator.generation

    await coordinator.invalidate_after_mutation([uuid4()])
    after_inline = coordinator.generation
    coordinator.schedule([uuid4()])
    after_schedule = coordinator.generation
    await coordinator.drain()

    assert start < after_inline < after_schedule
