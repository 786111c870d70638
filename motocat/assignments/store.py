"""Relational persistence for model assignments and trim overrides.

All SQL for the assignment engine lives here. Every failure is re-raised as a
``StoreError`` (or ``ConflictError`` for constraint violations) naming the
operation and the key it was working on.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from motocat.db.models import (
    ConfigurationRow,
    ModelComponentAssignmentRow,
    ModelYearRow,
    MotorcycleModelRow,
)
from motocat.errors import ConflictError, NotFound, StoreError
from motocat.models import ComponentType, LinkingStats, ModelComponentAssignment

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(slots=True)
class ConfigurationContext:
    """A configuration row with the year and model it hangs off."""

    configuration: ConfigurationRow
    model_year_id: UUID
    year: int
    model_id: UUID
    model_name: str


class AssignmentStore:
    """Data access for ``model_component_assignments`` and trim component columns."""

    def __init__(self, session: AsyncSession):
        """Initialize the store with a database session.

        Args:
            session: SQLAlchemy async session; the caller owns commit/rollback
        """
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def require_model(self, model_id: UUID) -> MotorcycleModelRow:
        try:
            model = await self.session.get(MotorcycleModelRow, model_id)
        except SQLAlchemyError as exc:
            raise StoreError("get_model", model_id) from exc
        if model is None:
            raise NotFound("model", model_id)
        return model

    async def get_configuration_context(self, configuration_id: UUID) -> ConfigurationContext:
        """Load a configuration with its model year and model.

        Raises:
            NotFound: If the configuration does not exist
        """
        contexts = await self._configuration_contexts(
            ConfigurationRow.id == configuration_id,
            operation="get_configuration",
            key=configuration_id,
        )
        if not contexts:
            raise NotFound("configuration", configuration_id)
        return contexts[0]

    async def configurations_for_years(
        self, year_ids: Sequence[UUID]
    ) -> list[ConfigurationContext]:
        if not year_ids:
            return []
        return await self._configuration_contexts(
            ConfigurationRow.model_year_id.in_(list(year_ids)),
            operation="list_configurations",
            key=tuple(year_ids),
        )

    async def _configuration_contexts(self, criterion, operation: str, key) -> list[ConfigurationContext]:
        stmt = (
            select(ConfigurationRow, ModelYearRow.year, ModelYearRow.model_id, MotorcycleModelRow.name)
            .join(ModelYearRow, ModelYearRow.id == ConfigurationRow.model_year_id)
            .join(MotorcycleModelRow, MotorcycleModelRow.id == ModelYearRow.model_id)
            .where(criterion)
            .order_by(ModelYearRow.year.asc(), ConfigurationRow.name.asc())
        )
        try:
            rows = (await self.session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise StoreError(operation, key) from exc

        return [
            ConfigurationContext(
                configuration=row.ConfigurationRow,
                model_year_id=row.ConfigurationRow.model_year_id,
                year=row.year,
                model_id=row.model_id,
                model_name=row.name,
            )
            for row in rows
        ]

    async def get_assignment(
        self, model_id: UUID, component_type: ComponentType
    ) -> ModelComponentAssignment | None:
        stmt = select(ModelComponentAssignmentRow).where(
            ModelComponentAssignmentRow.model_id == model_id,
            ModelComponentAssignmentRow.component_type == component_type.value,
        )
        try:
            row = (await self.session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("get_assignment", (model_id, component_type.value)) from exc
        return _to_assignment(row) if row else None

    async def assignments_for_models(
        self, model_ids: Iterable[UUID]
    ) -> dict[UUID, dict[ComponentType, ModelComponentAssignment]]:
        """Model assignments grouped by model, then component type."""
        model_ids = list(set(model_ids))
        grouped: dict[UUID, dict[ComponentType, ModelComponentAssignment]] = {
            model_id: {} for model_id in model_ids
        }
        if not model_ids:
            return grouped

        stmt = select(ModelComponentAssignmentRow).where(
            ModelComponentAssignmentRow.model_id.in_(model_ids)
        )
        try:
            rows = (await self.session.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("list_assignments", tuple(model_ids)) from exc

        for row in rows:
            assignment = _to_assignment(row)
            grouped[assignment.model_id][assignment.component_type] = assignment
        return grouped

    async def list_assignments(self, model_id: UUID) -> list[ModelComponentAssignment]:
        await self.require_model(model_id)
        by_type = (await self.assignments_for_models([model_id]))[model_id]
        return [by_type[ct] for ct in ComponentType if ct in by_type]

    async def year_ids_for_models(self, model_ids: Iterable[UUID]) -> list[UUID]:
        model_ids = list(model_ids)
        if not model_ids:
            return []
        stmt = select(ModelYearRow.id).where(ModelYearRow.model_id.in_(model_ids))
        try:
            return list((await self.session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreError("list_model_years", tuple(model_ids)) from exc

    async def existing_year_ids(self, year_ids: Iterable[UUID]) -> set[UUID]:
        year_ids = list(year_ids)
        if not year_ids:
            return set()
        stmt = select(ModelYearRow.id).where(ModelYearRow.id.in_(year_ids))
        try:
            return set((await self.session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreError("list_model_years", tuple(year_ids)) from exc

    async def find_configuration_by_name(self, model_year_id: UUID, name: str | None) -> UUID | None:
        name_match = (
            ConfigurationRow.name.is_(None) if name is None else ConfigurationRow.name == name
        )
        stmt = select(ConfigurationRow.id).where(
            ConfigurationRow.model_year_id == model_year_id, name_match
        )
        try:
            return (await self.session.execute(stmt)).scalars().first()
        except SQLAlchemyError as exc:
            raise StoreError("find_configuration", (model_year_id, name)) from exc

    # ------------------------------------------------------------------
    # Usage queries
    # ------------------------------------------------------------------

    async def assignment_references(
        self, component_type: ComponentType, component_id: UUID
    ) -> list[tuple[UUID, str]]:
        """(model_id, model name) for every model assignment pointing at the component."""
        stmt = (
            select(ModelComponentAssignmentRow.model_id, MotorcycleModelRow.name)
            .join(MotorcycleModelRow, MotorcycleModelRow.id == ModelComponentAssignmentRow.model_id)
            .where(
                ModelComponentAssignmentRow.component_type == component_type.value,
                ModelComponentAssignmentRow.component_id == component_id,
            )
            .order_by(MotorcycleModelRow.name.asc())
        )
        try:
            return [(row.model_id, row.name) for row in (await self.session.execute(stmt)).all()]
        except SQLAlchemyError as exc:
            raise StoreError(
                "assignment_references", (component_type.value, component_id)
            ) from exc

    async def configuration_references(
        self, component_type: ComponentType, component_id: UUID
    ) -> list[tuple[str, str | None]]:
        """(model name, trim name) for every trim storing the component id.

        The override flag is deliberately not part of the filter.
        """
        column = getattr(ConfigurationRow, component_type.id_column)
        stmt = (
            select(MotorcycleModelRow.name.label("model_name"), ConfigurationRow.name.label("trim_name"))
            .join(ModelYearRow, ModelYearRow.id == ConfigurationRow.model_year_id)
            .join(MotorcycleModelRow, MotorcycleModelRow.id == ModelYearRow.model_id)
            .where(column == component_id)
            .order_by(MotorcycleModelRow.name.asc(), ModelYearRow.year.asc())
        )
        try:
            return [
                (row.model_name, row.trim_name)
                for row in (await self.session.execute(stmt)).all()
            ]
        except SQLAlchemyError as exc:
            raise StoreError(
                "configuration_references", (component_type.value, component_id)
            ) from exc

    async def linking_stats(self) -> LinkingStats:
        stmt = select(
            ModelComponentAssignmentRow.component_type,
            ModelComponentAssignmentRow.model_id,
            ModelComponentAssignmentRow.component_id,
        )
        try:
            rows = (await self.session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise StoreError("linking_stats", "model_component_assignments") from exc

        by_type: dict[str, int] = {}
        for row in rows:
            by_type[row.component_type] = by_type.get(row.component_type, 0) + 1

        return LinkingStats(
            total_assignments=len(rows),
            assignments_by_type=by_type,
            models_with_components=len({row.model_id for row in rows}),
            components_in_use=len({(row.component_type, row.component_id) for row in rows}),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_assignment(
        self,
        model_id: UUID,
        component_type: ComponentType,
        component_id: UUID,
        effective_from_year: int | None = None,
        effective_to_year: int | None = None,
        notes: str | None = None,
    ) -> None:
        """Insert or update the single assignment row for (model_id, component_type).

        Concurrent writers on the same key resolve last-write-wins.

        Raises:
            ConflictError: On an unexpected constraint violation
            StoreError: If the database operation fails
        """
        key = (model_id, component_type.value)
        values = {
            "component_id": component_id,
            "is_default": True,
            "effective_from_year": effective_from_year,
            "effective_to_year": effective_to_year,
            "notes": notes,
        }

        try:
            insert = _UPSERT_INSERTS.get(self.session.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(ModelComponentAssignmentRow).values(
                    id=uuid4(),
                    model_id=model_id,
                    component_type=component_type.value,
                    assignment_type="standard",
                    **values,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["model_id", "component_type"],
                    set_={**values, "updated_at": func.now()},
                )
                await self.session.execute(stmt)
            else:
                await self._select_then_write(model_id, component_type, values)
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError("upsert_assignment", key, str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StoreError("upsert_assignment", key) from exc

    async def _select_then_write(
        self, model_id: UUID, component_type: ComponentType, values: dict
    ) -> None:
        stmt = select(ModelComponentAssignmentRow).where(
            ModelComponentAssignmentRow.model_id == model_id,
            ModelComponentAssignmentRow.component_type == component_type.value,
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            self.session.add(
                ModelComponentAssignmentRow(
                    model_id=model_id, component_type=component_type.value, **values
                )
            )
        else:
            for name, value in values.items():
                setattr(row, name, value)

    async def delete_assignment(self, model_id: UUID, component_type: ComponentType) -> bool:
        """Delete the assignment row for the key; returns whether one existed."""
        stmt = delete(ModelComponentAssignmentRow).where(
            ModelComponentAssignmentRow.model_id == model_id,
            ModelComponentAssignmentRow.component_type == component_type.value,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError("delete_assignment", (model_id, component_type.value)) from exc
        return result.rowcount > 0

    async def set_override(
        self,
        configuration_id: UUID,
        component_type: ComponentType,
        component_id: UUID | None,
    ) -> UUID:
        """Write component id and override flag in one UPDATE.

        Returns:
            The configuration's model_year_id

        Raises:
            NotFound: If the configuration does not exist
        """
        key = (configuration_id, component_type.value)
        try:
            model_year_id = (
                await self.session.execute(
                    select(ConfigurationRow.model_year_id).where(
                        ConfigurationRow.id == configuration_id
                    )
                )
            ).scalar_one_or_none()
            if model_year_id is None:
                raise NotFound("configuration", configuration_id)

            await self.session.execute(
                update(ConfigurationRow)
                .where(ConfigurationRow.id == configuration_id)
                .values(
                    {
                        component_type.id_column: component_id,
                        component_type.override_column: component_id is not None,
                    }
                )
            )
        except IntegrityError as exc:
            raise ConflictError("set_override", key, str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StoreError("set_override", key) from exc
        return model_year_id

    async def copy_configuration(self, source: ConfigurationRow, model_year_id: UUID) -> UUID:
        """Insert a copy of a trim (name, components, overrides) under another year."""
        copy = ConfigurationRow(
            model_year_id=model_year_id,
            name=source.name,
            trim_level=source.trim_level,
            is_default=False,
        )
        for component_type in ComponentType:
            component_id, override = source.component_slot(component_type)
            setattr(copy, component_type.id_column, component_id)
            setattr(copy, component_type.override_column, override)

        self.session.add(copy)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError("copy_configuration", (source.id, model_year_id), str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StoreError("copy_configuration", (source.id, model_year_id)) from exc
        return copy.id


def _to_assignment(row: ModelComponentAssignmentRow) -> ModelComponentAssignment:
    return ModelComponentAssignment(
        id=row.id,
        model_id=row.model_id,
        component_type=ComponentType(row.component_type),
        component_id=row.component_id,
        assignment_type=row.assignment_type,
        is_default=row.is_default,
        effective_from_year=row.effective_from_year,
        effective_to_year=row.effective_to_year,
        notes=row.notes,
    )
