"""Component assignment service: the operations exposed to the web layer and CLI.

Writes go through the bulk coordinator, then schedule cache invalidation for
every model year they touched. Reads of effective components go straight to
the resolution engine; only the per-year configuration views and the
per-model assignment lists are cached.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from motocat.assignments.bulk import BulkAssignmentCoordinator
from motocat.assignments.resolution import ResolutionEngine
from motocat.assignments.store import AssignmentStore
from motocat.assignments.trims import copy_trim_to_years
from motocat.assignments.usage import UsageAnalyzer, usage_report
from motocat.cache.backends import QueryCache, build_query_cache
from motocat.cache.invalidation import CacheInvalidationCoordinator
from motocat.cache.keys import CacheKey
from motocat.catalog.repository import ComponentCatalog
from motocat.config import AppConfig, get_config
from motocat.db.connection import get_session_factory
from motocat.errors import MotocatError, UsageBlockedError
from motocat.models import (
    BulkAssignmentResult,
    ComponentType,
    ComponentUsageStats,
    ConfigurationView,
    LinkingStats,
    ModelComponentAssignment,
    Resolution,
    TrimCopyResult,
    UsageReport,
)

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: QueryCache,
        max_parallel: int = 8,
        background_invalidation: bool = True,
    ):
        self._session_factory = session_factory
        self.cache = cache
        self.resolution = ResolutionEngine(session_factory)
        self.usage = UsageAnalyzer(session_factory)
        self.bulk = BulkAssignmentCoordinator(session_factory, max_parallel=max_parallel)
        self.invalidation = CacheInvalidationCoordinator(cache, background=background_invalidation)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, configuration_id: UUID, component_type: ComponentType) -> Resolution:
        return await self.resolution.resolve(configuration_id, component_type)

    async def resolve_all(self, configuration_id: UUID) -> dict[ComponentType, Resolution]:
        return await self.resolution.resolve_all(configuration_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def assign(
        self,
        component_type: ComponentType,
        component_id: UUID,
        targets: Sequence[UUID],
        effective_from_year: int | None = None,
        effective_to_year: int | None = None,
        notes: str | None = None,
    ) -> BulkAssignmentResult:
        """Assign a component as the default of every target model.

        Returns per-target outcomes; partial failure is not an exception.
        """
        result = await self.bulk.assign(
            component_type,
            component_id,
            targets,
            effective_from_year=effective_from_year,
            effective_to_year=effective_to_year,
            notes=notes,
        )
        changed = [outcome.model_id for outcome in result.succeeded]
        if changed:
            await self._invalidate_models(changed)
        return result

    async def remove(self, model_id: UUID, component_type: ComponentType) -> bool:
        removed = await self.bulk.remove(model_id, component_type)
        await self._invalidate_models([model_id])
        return removed

    async def set_trim_override(
        self,
        configuration_id: UUID,
        component_type: ComponentType,
        component_id: UUID | None,
    ) -> Resolution:
        """Set (or clear, with None) a trim override and return the new effective component."""
        model_year_id = await self.bulk.set_trim_override(
            configuration_id, component_type, component_id
        )
        await self.invalidation.after_write([model_year_id])
        return await self.resolution.resolve(configuration_id, component_type)

    async def copy_trim_to_years(
        self, configuration_id: UUID, target_year_ids: Sequence[UUID]
    ) -> TrimCopyResult:
        async with self._session_factory() as session:
            result = await copy_trim_to_years(session, configuration_id, target_year_ids)
            await session.commit()

        if result.created:
            await self.invalidation.after_write(target_year_ids)
        return result

    # ------------------------------------------------------------------
    # Usage and catalog
    # ------------------------------------------------------------------

    async def can_delete(self, component_type: ComponentType, component_id: UUID) -> UsageReport:
        return await self.usage.can_delete(component_type, component_id)

    async def usage_stats(
        self, component_type: ComponentType, component_id: UUID
    ) -> ComponentUsageStats:
        return await self.usage.usage_stats(component_type, component_id)

    async def delete_component(self, component_type: ComponentType, component_id: UUID) -> None:
        """Delete a catalog component that nothing references.

        Raises:
            UsageBlockedError: If any model or trim still references it
            NotFound: If the component does not exist
        """
        async with self._session_factory() as session:
            report = await usage_report(AssignmentStore(session), component_type, component_id)
            if not report.can_delete:
                raise UsageBlockedError(report)
            await ComponentCatalog(session).delete(component_type, component_id)
            await session.commit()

        logger.info("Deleted %s %s", component_type.value, component_id)

    async def linking_stats(self) -> LinkingStats:
        async with self._session_factory() as session:
            return await AssignmentStore(session).linking_stats()

    # ------------------------------------------------------------------
    # Cached read views
    # ------------------------------------------------------------------

    async def list_assignments(self, model_id: UUID) -> list[ModelComponentAssignment]:
        key = CacheKey.model_assignments(model_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        generation = self.invalidation.generation
        async with self._session_factory() as session:
            assignments = await AssignmentStore(session).list_assignments(model_id)
        await self._store_unless_invalidated(key, assignments, generation)
        return assignments

    async def configurations_for_year(self, year_id: UUID) -> list[ConfigurationView]:
        key = CacheKey.configurations(year_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        generation = self.invalidation.generation
        views = await self.resolution.views_for_years([year_id])
        await self._store_unless_invalidated(key, views, generation)
        return views

    async def configurations_for_years(self, year_ids: Iterable[UUID]) -> list[ConfigurationView]:
        year_ids = list(dict.fromkeys(year_ids))
        key = CacheKey.configurations_multi(year_ids)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        generation = self.invalidation.generation
        views = await self.resolution.views_for_years(year_ids)
        await self._store_unless_invalidated(key, views, generation)
        return views

    async def _store_unless_invalidated(self, key: CacheKey, value, generation: int) -> None:
        # A write invalidated while this value was computed; it may predate the commit
        if self.invalidation.generation != generation:
            logger.debug("Skipping cache store for %s after concurrent invalidation", key)
            return
        await self.cache.set(key, value)

    # ------------------------------------------------------------------

    async def _invalidate_models(self, model_ids: list[UUID]) -> None:
        try:
            async with self._session_factory() as session:
                year_ids = await AssignmentStore(session).year_ids_for_models(model_ids)
        except MotocatError as exc:
            # Namespace-wide invalidation still covers every year
            logger.warning("Could not list years for %s: %s", model_ids, exc)
            year_ids = []
        await self.invalidation.after_write(year_ids, model_ids)

    async def close(self) -> None:
        """Wait for pending cache invalidations, then release the cache backend."""
        await self.invalidation.drain()
        await self.cache.close()


def build_service(
    config: AppConfig | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    cache: QueryCache | None = None,
) -> AssignmentService:
    """Assemble a service from configuration, defaulting to the global engine."""
    config = config or get_config()
    return AssignmentService(
        session_factory or get_session_factory(),
        cache if cache is not None else build_query_cache(config.cache),
        max_parallel=config.bulk.max_parallel,
        background_invalidation=config.cache.background_invalidation,
    )
