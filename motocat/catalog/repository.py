"""Component catalog queries.

One table per component type; this module hides which one.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from motocat.db.models import COMPONENT_TABLES, Base
from motocat.errors import NotFound, StoreError
from motocat.models import Component, ComponentType

# Columns used to build a readable label when a table has no name column
_LABEL_COLUMNS: dict[ComponentType, tuple[str, ...]] = {
    ComponentType.ENGINE: ("name",),
    ComponentType.BRAKE_SYSTEM: ("brake_brand", "type"),
    ComponentType.FRAME: ("material", "type"),
    ComponentType.SUSPENSION: ("brand", "front_type"),
    ComponentType.WHEEL: ("rim_material", "type"),
}


class ComponentCatalog:
    """Read access to the component tables, plus the guarded delete used by the service."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, component_type: ComponentType, component_id: UUID) -> Component:
        """Fetch one component.

        Raises:
            NotFound: If no component of that type has this id
            StoreError: If the query fails
        """
        table = COMPONENT_TABLES[component_type]
        try:
            row = await self.session.get(table, component_id)
        except SQLAlchemyError as exc:
            raise StoreError("get_component", (component_type.value, component_id)) from exc

        if row is None:
            raise NotFound(component_type.value, component_id)

        return _to_component(component_type, row)

    async def delete(self, component_type: ComponentType, component_id: UUID) -> None:
        """Delete a component row. Callers check usage first.

        Raises:
            NotFound: If the component does not exist
        """
        table = COMPONENT_TABLES[component_type]
        try:
            result = await self.session.execute(
                delete(table).where(table.id == component_id)
            )
        except SQLAlchemyError as exc:
            raise StoreError(
                "delete_component", (component_type.value, component_id)
            ) from exc

        if result.rowcount == 0:
            raise NotFound(component_type.value, component_id)


def _to_component(component_type: ComponentType, row: Base) -> Component:
    specs = {
        column.key: getattr(row, column.key)
        for column in row.__table__.columns
        if column.key != "id"
    }
    label_parts = [
        str(specs[name]) for name in _LABEL_COLUMNS[component_type] if specs.get(name)
    ]
    name = " ".join(label_parts) or f"{component_type.value} {row.id}"
    return Component(id=row.id, type=component_type, name=name, specs=specs)
