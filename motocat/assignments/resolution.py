"""Effective component resolution: trim override, then model default, then none.

The precedence rule is defined once, in ``effective_component``; every read
path (single resolve, batch resolve, cached configuration views) goes
through it.
"""

from __future__ import annotations

from collections.abc import Mapping
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from motocat.assignments.store import AssignmentStore, ConfigurationContext
from motocat.db.models import ConfigurationRow
from motocat.models import (
    ComponentType,
    ConfigurationView,
    ModelComponentAssignment,
    Resolution,
    ResolutionSource,
)


def effective_component(
    component_type: ComponentType,
    override: bool,
    override_id: UUID | None,
    assignment: ModelComponentAssignment | None,
    year: int,
) -> Resolution:
    """Apply the precedence rule for one component type.

    1. Trim override, when the flag is set and an id is stored.
    2. Model assignment, when its effective window covers ``year``.
    3. Nothing.

    A set flag with a null id is treated as no override.
    """
    if override and override_id is not None:
        return Resolution(
            component_type=component_type,
            component_id=override_id,
            source=ResolutionSource.TRIM,
        )

    if assignment is not None and assignment.covers(year):
        return Resolution(
            component_type=component_type,
            component_id=assignment.component_id,
            source=ResolutionSource.MODEL,
        )

    return Resolution(component_type=component_type, component_id=None, source=ResolutionSource.NONE)


def resolve_configuration(
    configuration: ConfigurationRow,
    year: int,
    assignments: Mapping[ComponentType, ModelComponentAssignment],
) -> dict[ComponentType, Resolution]:
    """Resolve every component type of one configuration independently."""
    resolved = {}
    for component_type in ComponentType:
        override_id, override = configuration.component_slot(component_type)
        resolved[component_type] = effective_component(
            component_type,
            override=override,
            override_id=override_id,
            assignment=assignments.get(component_type),
            year=year,
        )
    return resolved


def build_views(
    contexts: list[ConfigurationContext],
    assignments_by_model: Mapping[UUID, Mapping[ComponentType, ModelComponentAssignment]],
) -> list[ConfigurationView]:
    return [
        ConfigurationView(
            id=ctx.configuration.id,
            name=ctx.configuration.name,
            model_year_id=ctx.model_year_id,
            year=ctx.year,
            components=resolve_configuration(
                ctx.configuration, ctx.year, assignments_by_model.get(ctx.model_id, {})
            ),
        )
        for ctx in contexts
    ]


class ResolutionEngine:
    """Computes effective components straight from the store; never reads the cache."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def resolve(
        self, configuration_id: UUID, component_type: ComponentType
    ) -> Resolution:
        """Effective component of one type for a configuration.

        Raises:
            NotFound: If the configuration does not exist
        """
        async with self._session_factory() as session:
            store = AssignmentStore(session)
            ctx = await store.get_configuration_context(configuration_id)
            override_id, override = ctx.configuration.component_slot(component_type)
            # An applicable override makes the model lookup unnecessary
            if override and override_id is not None:
                assignment = None
            else:
                assignment = await store.get_assignment(ctx.model_id, component_type)

        return effective_component(
            component_type,
            override=override,
            override_id=override_id,
            assignment=assignment,
            year=ctx.year,
        )

    async def resolve_all(self, configuration_id: UUID) -> dict[ComponentType, Resolution]:
        """Effective component of every type for a configuration.

        Raises:
            NotFound: If the configuration does not exist
        """
        async with self._session_factory() as session:
            store = AssignmentStore(session)
            ctx = await store.get_configuration_context(configuration_id)
            assignments = (await store.assignments_for_models([ctx.model_id]))[ctx.model_id]

        return resolve_configuration(ctx.configuration, ctx.year, assignments)

    async def views_for_years(self, year_ids: list[UUID]) -> list[ConfigurationView]:
        """Every configuration of the given years with its resolved components."""
        async with self._session_factory() as session:
            store = AssignmentStore(session)
            contexts = await store.configurations_for_years(year_ids)
            assignments = await store.assignments_for_models(ctx.model_id for ctx in contexts)

        return build_views(contexts, assignments)
