"""Pytest configuration and fixtures for Motocat tests.

Database fixtures use a file-backed SQLite database per test so concurrent
sessions (bulk assignment) get their own connections.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from motocat.assignments.service import AssignmentService
from motocat.cache.backends import InMemoryQueryCache
from motocat.config import reset_config
from motocat.db.connection import build_engine, build_session_factory
from motocat.db.models import (
    Base,
    BrakeSystemRow,
    ConfigurationRow,
    EngineRow,
    ModelComponentAssignmentRow,
    ModelYearRow,
    MotorcycleModelRow,
)
from motocat.models import ComponentType


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Point configuration at a throwaway database for every test."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("CACHE_ENABLED", "false")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    reset_config()
    yield
    reset_config()


@pytest_asyncio.fixture()
async def session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """Fresh schema in a temporary SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'motocat.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def cache() -> InMemoryQueryCache:
    return InMemoryQueryCache(prefix="test")


@pytest.fixture
def service(session_factory, cache) -> AssignmentService:
    """Service with synchronous invalidation, so assertions need no draining."""
    return AssignmentService(
        session_factory, cache, max_parallel=4, background_invalidation=False
    )


class Seeder:
    """Inserts catalog, model, year and trim rows for a test."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _add(self, *rows) -> None:
        async with self.session_factory() as session:
            session.add_all(rows)
            await session.commit()

    async def model(self, name: str, years: Iterable[int] = ()) -> tuple[UUID, dict[int, UUID]]:
        """Create a model and its years; returns (model_id, {year: model_year_id})."""
        model = MotorcycleModelRow(name=name, slug=name.lower().replace(" ", "-"))
        await self._add(model)
        year_rows = [ModelYearRow(model_id=model.id, year=year) for year in years]
        if year_rows:
            await self._add(*year_rows)
        return model.id, {row.year: row.id for row in year_rows}

    async def engine(self, name: str, displacement_cc: float = 765) -> UUID:
        row = EngineRow(name=name, displacement_cc=displacement_cc)
        await self._add(row)
        return row.id

    async def brake_system(self, brand: str = "Brembo", kind: str = "Dual disc") -> UUID:
        row = BrakeSystemRow(type=kind, brake_brand=brand, has_abs=True)
        await self._add(row)
        return row.id

    async def trim(
        self,
        model_year_id: UUID,
        name: str | None = "Standard",
        **slots: tuple[UUID | None, bool],
    ) -> UUID:
        """Create a configuration; ``slots`` maps component type value to (id, override)."""
        row = ConfigurationRow(model_year_id=model_year_id, name=name)
        for type_value, (component_id, override) in slots.items():
            component_type = ComponentType(type_value)
            setattr(row, component_type.id_column, component_id)
            setattr(row, component_type.override_column, override)
        await self._add(row)
        return row.id

    async def assignment(
        self,
        model_id: UUID,
        component_type: ComponentType,
        component_id: UUID,
        effective_from_year: int | None = None,
        effective_to_year: int | None = None,
    ) -> None:
        await self._add(
            ModelComponentAssignmentRow(
                model_id=model_id,
                component_type=component_type.value,
                component_id=component_id,
                effective_from_year=effective_from_year,
                effective_to_year=effective_to_year,
            )
        )


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)
