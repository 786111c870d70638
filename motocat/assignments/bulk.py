"""Bulk assignment of one component to many models.

Each target model is written in its own session and transaction, so one bad
target never rolls back the others. Targets run concurrently up to
``max_parallel``; they share no state because the upsert key
(model_id, component_type) differs per target.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from motocat.assignments.store import AssignmentStore
from motocat.catalog.repository import ComponentCatalog
from motocat.errors import MotocatError
from motocat.models import (
    AssignmentOutcome,
    AssignmentStatus,
    BulkAssignmentResult,
    ComponentType,
    check_window,
)

logger = logging.getLogger(__name__)


class BulkAssignmentCoordinator:
    """Applies model-level assignments and trim overrides through the store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_parallel: int = 8,
    ):
        if max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")
        self._session_factory = session_factory
        self.max_parallel = max_parallel

    async def assign(
        self,
        component_type: ComponentType,
        component_id: UUID,
        targets: Sequence[UUID],
        effective_from_year: int | None = None,
        effective_to_year: int | None = None,
        notes: str | None = None,
    ) -> BulkAssignmentResult:
        """Upsert (model_id, component_type) -> component_id for every target.

        Never raises for a failing target: the result carries one outcome per
        distinct target, in request order.

        Raises:
            InvalidWindowError: If the effective window is inverted (nothing is written)
        """
        check_window(effective_from_year, effective_to_year)
        targets = list(dict.fromkeys(targets))
        result = BulkAssignmentResult(component_type=component_type, component_id=component_id)
        if not targets:
            return result

        try:
            async with self._session_factory() as session:
                await ComponentCatalog(session).get(component_type, component_id)
        except MotocatError as exc:
            # Missing component: every target fails, nothing is written
            logger.warning("Bulk assign aborted before writing: %s", exc)
            result.results = [
                AssignmentOutcome(model_id=model_id, status=AssignmentStatus.ERROR, error=str(exc))
                for model_id in targets
            ]
            return result

        semaphore = asyncio.Semaphore(self.max_parallel)

        async def run(model_id: UUID) -> AssignmentOutcome:
            async with semaphore:
                return await self._assign_one(
                    model_id,
                    component_type,
                    component_id,
                    effective_from_year,
                    effective_to_year,
                    notes,
                )

        result.results = list(await asyncio.gather(*(run(model_id) for model_id in targets)))

        logger.info(
            "Bulk assign %s %s: %s",
            component_type.value,
            component_id,
            result.summary,
        )
        return result

    async def _assign_one(
        self,
        model_id: UUID,
        component_type: ComponentType,
        component_id: UUID,
        effective_from_year: int | None,
        effective_to_year: int | None,
        notes: str | None,
    ) -> AssignmentOutcome:
        try:
            async with self._session_factory() as session:
                store = AssignmentStore(session)
                await store.require_model(model_id)
                await store.upsert_assignment(
                    model_id,
                    component_type,
                    component_id,
                    effective_from_year=effective_from_year,
                    effective_to_year=effective_to_year,
                    notes=notes,
                )
                await session.commit()
        except (MotocatError, SQLAlchemyError) as exc:
            logger.warning(
                "Assignment of %s %s to model %s failed: %s",
                component_type.value,
                component_id,
                model_id,
                exc,
            )
            return AssignmentOutcome(model_id=model_id, status=AssignmentStatus.ERROR, error=str(exc))

        logger.info(
            "Assigned %s %s to model %s", component_type.value, component_id, model_id
        )
        return AssignmentOutcome(model_id=model_id, status=AssignmentStatus.OK)

    async def remove(self, model_id: UUID, component_type: ComponentType) -> bool:
        """Delete the assignment for (model_id, component_type).

        Removing an absent assignment is not an error.

        Returns:
            True if a row was deleted
        """
        async with self._session_factory() as session:
            removed = await AssignmentStore(session).delete_assignment(model_id, component_type)
            await session.commit()

        logger.info(
            "Removed %s assignment from model %s (existed=%s)",
            component_type.value,
            model_id,
            removed,
        )
        return removed

    async def set_trim_override(
        self,
        configuration_id: UUID,
        component_type: ComponentType,
        component_id: UUID | None,
    ) -> UUID:
        """Set or clear a trim's override for one component type.

        Returns:
            The configuration's model_year_id

        Raises:
            NotFound: If the configuration or the component does not exist
        """
        async with self._session_factory() as session:
            if component_id is not None:
                await ComponentCatalog(session).get(component_type, component_id)
            model_year_id = await AssignmentStore(session).set_override(
                configuration_id, component_type, component_id
            )
            await session.commit()

        logger.info(
            "Trim %s %s override -> %s",
            configuration_id,
            component_type.value,
            component_id,
        )
        return model_year_id
