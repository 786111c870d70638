"""SQLAlchemy async database models for Motocat.

Model -> model year -> configuration (trim) hierarchy, the per-model default
component assignments, and one catalog table per component type.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

from motocat.models import ComponentType


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class MotorcycleModelRow(Base):
    """Motorcycle model family (one nameplate)."""

    __tablename__ = "motorcycle_models"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str | None] = mapped_column(Text, unique=True)
    production_start_year: Mapped[int | None] = mapped_column(Integer)
    production_end_year: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ModelYearRow(Base):
    """A model's production year."""

    __tablename__ = "model_years"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    model_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("motorcycle_models.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (UniqueConstraint("model_id", "year", name="uq_model_years_model_year"),)


class EngineRow(Base):
    __tablename__ = "engines"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    displacement_cc: Mapped[float] = mapped_column(Float, nullable=False)
    engine_type: Mapped[str | None] = mapped_column(Text)
    cylinder_count: Mapped[int | None] = mapped_column(Integer)
    cooling: Mapped[str | None] = mapped_column(Text)
    power_hp: Mapped[float | None] = mapped_column(Float)
    torque_nm: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class BrakeSystemRow(Base):
    __tablename__ = "brake_systems"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    brake_brand: Mapped[str | None] = mapped_column(Text)
    front_type: Mapped[str | None] = mapped_column(Text)
    rear_type: Mapped[str | None] = mapped_column(Text)
    front_disc_size_mm: Mapped[str | None] = mapped_column(Text)
    rear_disc_size_mm: Mapped[str | None] = mapped_column(Text)
    has_abs: Mapped[bool | None] = mapped_column(Boolean)
    notes: Mapped[str | None] = mapped_column(Text)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class FrameRow(Base):
    __tablename__ = "frames"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    material: Mapped[str | None] = mapped_column(Text)
    rake_degrees: Mapped[float | None] = mapped_column(Float)
    trail_mm: Mapped[float | None] = mapped_column(Float)
    wheelbase_mm: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class SuspensionRow(Base):
    __tablename__ = "suspensions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    brand: Mapped[str | None] = mapped_column(Text)
    front_type: Mapped[str | None] = mapped_column(Text)
    rear_type: Mapped[str | None] = mapped_column(Text)
    front_travel_mm: Mapped[float | None] = mapped_column(Float)
    rear_travel_mm: Mapped[float | None] = mapped_column(Float)
    adjustability: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class WheelRow(Base):
    __tablename__ = "wheels"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    type: Mapped[str | None] = mapped_column(Text)
    rim_material: Mapped[str | None] = mapped_column(Text)
    front_size: Mapped[str | None] = mapped_column(Text)
    rear_size: Mapped[str | None] = mapped_column(Text)
    front_tire_size: Mapped[str | None] = mapped_column(Text)
    rear_tire_size: Mapped[str | None] = mapped_column(Text)
    tubeless: Mapped[bool | None] = mapped_column(Boolean)
    notes: Mapped[str | None] = mapped_column(Text)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


# Catalog table per component type
COMPONENT_TABLES: dict[ComponentType, type[Base]] = {
    ComponentType.ENGINE: EngineRow,
    ComponentType.BRAKE_SYSTEM: BrakeSystemRow,
    ComponentType.FRAME: FrameRow,
    ComponentType.SUSPENSION: SuspensionRow,
    ComponentType.WHEEL: WheelRow,
}


class ConfigurationRow(Base):
    """Trim under a model year.

    Each component type has a nullable component id and an override flag. The
    flag only counts together with a non-null id.
    """

    __tablename__ = "model_configurations"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    model_year_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("model_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(Text)
    trim_level: Mapped[str | None] = mapped_column(Text)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    engine_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("engines.id"), index=True
    )
    engine_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    brake_system_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("brake_systems.id"), index=True
    )
    brake_system_override: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    frame_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("frames.id"), index=True
    )
    frame_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    suspension_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("suspensions.id"), index=True
    )
    suspension_override: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    wheel_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("wheels.id"), index=True
    )
    wheel_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def component_slot(self, component_type: ComponentType) -> tuple[UUID | None, bool]:
        """Return (component_id, override flag) for one component type."""
        return (
            getattr(self, component_type.id_column),
            bool(getattr(self, component_type.override_column)),
        )


class ModelComponentAssignmentRow(Base):
    """Default component for all trims of a model.

    At most one row per (model_id, component_type).
    """

    __tablename__ = "model_component_assignments"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    model_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("motorcycle_models.id", ondelete="CASCADE"),
        nullable=False,
    )
    component_type: Mapped[str] = mapped_column(Text, nullable=False)
    # Polymorphic over the catalog tables, so no foreign key
    component_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    assignment_type: Mapped[str] = mapped_column(Text, default="standard", nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    effective_from_year: Mapped[int | None] = mapped_column(Integer)
    effective_to_year: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "model_id", "component_type", name="uq_model_component_assignments_key"
        ),
        CheckConstraint(
            "effective_from_year IS NULL OR effective_to_year IS NULL "
            "OR effective_from_year <= effective_to_year",
            name="check_assignment_window",
        ),
        CheckConstraint(
            "component_type IN ('engine', 'brake_system', 'frame', 'suspension', 'wheel')",
            name="check_assignment_component_type",
        ),
        Index("idx_assignments_component", "component_type", "component_id"),
    )
