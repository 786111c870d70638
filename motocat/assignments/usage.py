"""Component usage accounting for safe catalog deletion.

A component counts as used when a model assignment points at it or when any
trim stores its id, whether or not that trim's override flag is set.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from motocat.assignments.store import AssignmentStore
from motocat.models import ComponentType, ComponentUsageStats, UsageReport

logger = logging.getLogger(__name__)


class UsageAnalyzer:
    """Answers "who references this component?" from the store, per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def can_delete(
        self, component_type: ComponentType, component_id: UUID
    ) -> UsageReport:
        async with self._session_factory() as session:
            return await usage_report(AssignmentStore(session), component_type, component_id)

    async def usage_stats(
        self, component_type: ComponentType, component_id: UUID
    ) -> ComponentUsageStats:
        async with self._session_factory() as session:
            store = AssignmentStore(session)
            models = await store.assignment_references(component_type, component_id)
            trims = await store.configuration_references(component_type, component_id)

        return ComponentUsageStats(
            component_id=component_id,
            component_type=component_type,
            usage_count=len(models) + len(trims),
            model_count=len(models),
            trim_count=len(trims),
        )


async def usage_report(
    store: AssignmentStore, component_type: ComponentType, component_id: UUID
) -> UsageReport:
    """Build the usage report inside an existing session.

    Used directly by the guarded delete so the check and the delete share a
    transaction.
    """
    models = await store.assignment_references(component_type, component_id)
    trims = await store.configuration_references(component_type, component_id)

    usage_count = len(models) + len(trims)
    report = UsageReport(
        component_type=component_type,
        component_id=component_id,
        can_delete=usage_count == 0,
        usage_count=usage_count,
        affected_models=[name for _, name in models],
        affected_trims=[f"{model_name} - {trim_name or 'Standard'}" for model_name, trim_name in trims],
    )
    logger.debug(
        "Usage of %s %s: %d model(s), %d trim(s)",
        component_type.value,
        component_id,
        len(models),
        len(trims),
    )
    return report
