"""Copying a trim, with its component choices, into other model years."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from motocat.assignments.store import AssignmentStore
from motocat.errors import NotFound
from motocat.models import TrimCopyResult

logger = logging.getLogger(__name__)


async def copy_trim_to_years(
    session: AsyncSession,
    configuration_id: UUID,
    target_year_ids: Sequence[UUID],
) -> TrimCopyResult:
    """Copy a configuration into each target year.

    The source year is skipped, as is any year that already has a trim with
    the same name; both are reported under ``existing``. All copies are
    written in the caller's transaction.

    Raises:
        NotFound: If the source configuration or any target year does not exist
    """
    store = AssignmentStore(session)
    source = await store.get_configuration_context(configuration_id)

    target_year_ids = list(dict.fromkeys(target_year_ids))
    missing = set(target_year_ids) - await store.existing_year_ids(target_year_ids)
    if missing:
        raise NotFound("model_year", sorted(str(year_id) for year_id in missing))

    result = TrimCopyResult()
    for year_id in target_year_ids:
        if year_id == source.model_year_id:
            result.existing.append(source.configuration.id)
            continue

        existing_id = await store.find_configuration_by_name(year_id, source.configuration.name)
        if existing_id is not None:
            logger.info(
                "Trim %r already exists for year %s", source.configuration.name, year_id
            )
            result.existing.append(existing_id)
            continue

        created_id = await store.copy_configuration(source.configuration, year_id)
        result.created.append(created_id)

    logger.info(
        "Copied trim %s: %d created, %d existing",
        configuration_id,
        len(result.created),
        len(result.existing),
    )
    return result
