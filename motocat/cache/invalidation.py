"""Marks cached configuration views stale after assignment writes.

A write invalidates, in order:

1. the per-year configuration entry of every affected year,
2. the whole multi-year namespace (any aggregate may include an affected year),
3. the whole configurations namespace, for views not enumerated above,

plus the assignment list of every touched model. Invalidation never fails
the write that triggered it: errors are logged and dropped, and scheduling
returns immediately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from uuid import UUID

from motocat.cache.backends import QueryCache
from motocat.cache.keys import CacheKey, CacheNamespace, InvalidationTarget

logger = logging.getLogger(__name__)


class CacheInvalidationCoordinator:
    """Turns "these years/models changed" into cache invalidations."""

    def __init__(self, cache: QueryCache, background: bool = True):
        self.cache = cache
        self.background = background
        # Only task handles, so scheduled invalidations are not garbage collected
        self._pending: set[asyncio.Task] = set()
        # Bumped by every invalidation; cached reads compare it before storing
        self._generation = 0

    @staticmethod
    def plan(
        affected_year_ids: Iterable[UUID], model_ids: Iterable[UUID] = ()
    ) -> list[InvalidationTarget]:
        """Targets to invalidate for a write touching these years and models."""
        targets: list[InvalidationTarget] = [
            CacheKey.configurations(year_id) for year_id in dict.fromkeys(affected_year_ids)
        ]
        targets.append(CacheNamespace.CONFIGURATIONS_MULTI)
        targets.append(CacheNamespace.CONFIGURATIONS)
        targets.extend(
            CacheKey.model_assignments(model_id) for model_id in dict.fromkeys(model_ids)
        )
        return targets

    async def invalidate_after_mutation(
        self, affected_year_ids: Iterable[UUID], model_ids: Iterable[UUID] = ()
    ) -> int:
        """Invalidate every target in the plan; returns how many entries were dropped.

        Safe to call redundantly. Never raises.
        """
        self._generation += 1
        removed = 0
        for target in self.plan(affected_year_ids, model_ids):
            try:
                removed += await self.cache.invalidate(target)
            except Exception as exc:
                logger.warning("Cache invalidation failed for %s: %s", target, exc)
        logger.debug("Invalidated %d cache entries", removed)
        return removed

    def schedule(
        self, affected_year_ids: Iterable[UUID], model_ids: Iterable[UUID] = ()
    ) -> asyncio.Task:
        """Run invalidation in the background and return without waiting."""
        self._generation += 1
        task = asyncio.create_task(
            self.invalidate_after_mutation(list(affected_year_ids), list(model_ids))
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def after_write(
        self, affected_year_ids: Iterable[UUID], model_ids: Iterable[UUID] = ()
    ) -> None:
        """Hook called once a write has committed."""
        if self.background:
            self.schedule(affected_year_ids, model_ids)
        else:
            await self.invalidate_after_mutation(affected_year_ids, model_ids)

    @property
    def generation(self) -> int:
        """Changes whenever an invalidation is scheduled or run."""
        return self._generation

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for scheduled invalidations (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
