"""Motocat Pydantic models for the component assignment engine.

These are the values handed across the service boundary; the SQLAlchemy rows
in ``motocat.db.models`` never leave the data-access layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

from motocat.errors import InvalidWindowError, PartialBulkFailure


class ComponentType(str, Enum):
    """Mechanical component families that can be shared across models."""

    ENGINE = "engine"
    BRAKE_SYSTEM = "brake_system"
    FRAME = "frame"
    SUSPENSION = "suspension"
    WHEEL = "wheel"

    @property
    def id_column(self) -> str:
        """Configuration column holding the trim's component id."""
        return f"{self.value}_id"

    @property
    def override_column(self) -> str:
        """Configuration column holding the trim's override flag."""
        return f"{self.value}_override"


class ResolutionSource(str, Enum):
    """Where an effective component came from."""

    TRIM = "trim"
    MODEL = "model"
    NONE = "none"


class AssignmentStatus(str, Enum):
    """Per-target outcome of a bulk assignment."""

    OK = "ok"
    ERROR = "error"


class Component(BaseModel):
    """Catalog record for a single component."""

    id: UUID
    type: ComponentType
    name: str
    specs: dict[str, Any] = Field(default_factory=dict)


class ModelComponentAssignment(BaseModel):
    """Default component for every trim under a model."""

    id: UUID = Field(default_factory=uuid4)
    model_id: UUID
    component_type: ComponentType
    component_id: UUID
    assignment_type: str = "standard"
    is_default: bool = True
    effective_from_year: int | None = None
    effective_to_year: int | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def validate_window(self) -> ModelComponentAssignment:
        check_window(self.effective_from_year, self.effective_to_year)
        return self

    def covers(self, year: int) -> bool:
        """True when ``year`` falls inside the effective window.

        Open ends are unbounded.
        """
        if self.effective_from_year is not None and year < self.effective_from_year:
            return False
        if self.effective_to_year is not None and year > self.effective_to_year:
            return False
        return True

    class Config:
        json_schema_extra = {
            "example": {
                "model_id": "550e8400-e29b-41d4-a716-446655440000",
                "component_type": "engine",
                "component_id": "660e8400-e29b-41d4-a716-446655440111",
                "is_default": True,
                "effective_from_year": 2018,
                "effective_to_year": 2022,
                "notes": "Euro 4 engine",
            }
        }


class Resolution(BaseModel):
    """Effective component of one type for one configuration."""

    component_type: ComponentType
    component_id: UUID | None
    source: ResolutionSource


class AssignmentOutcome(BaseModel):
    """Result for one target model of a bulk assignment."""

    model_id: UUID
    status: AssignmentStatus
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == AssignmentStatus.OK


class BulkAssignmentResult(BaseModel):
    """Per-target outcomes of one bulk assignment call."""

    component_type: ComponentType
    component_id: UUID
    results: list[AssignmentOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[AssignmentOutcome]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[AssignmentOutcome]:
        return [r for r in self.results if not r.ok]

    @property
    def summary(self) -> str:
        return f"{len(self.succeeded)} of {len(self.results)} succeeded"

    def as_failure(self) -> PartialBulkFailure | None:
        """Return a PartialBulkFailure when any target failed, else None."""
        if not self.failed:
            return None
        return PartialBulkFailure(self.results)


class UsageReport(BaseModel):
    """Answer to "can this component be deleted?"."""

    component_type: ComponentType
    component_id: UUID
    can_delete: bool
    usage_count: int
    affected_models: list[str] = Field(default_factory=list)
    affected_trims: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        if self.can_delete:
            return f"{self.component_type.value} {self.component_id} is not in use"
        used_by = self.affected_models + self.affected_trims
        return (
            f"{self.component_type.value} {self.component_id} is used "
            f"{self.usage_count} time(s): {', '.join(used_by)}"
        )


class ComponentUsageStats(BaseModel):
    """Derived usage counts; recomputed on every call."""

    component_id: UUID
    component_type: ComponentType
    usage_count: int
    model_count: int
    trim_count: int


class LinkingStats(BaseModel):
    """Aggregate view of the model assignment table."""

    total_assignments: int = 0
    assignments_by_type: dict[str, int] = Field(default_factory=dict)
    models_with_components: int = 0
    components_in_use: int = 0


class TrimCopyResult(BaseModel):
    created: list[UUID] = Field(default_factory=list)
    existing: list[UUID] = Field(default_factory=list)


class ConfigurationView(BaseModel):
    """A trim together with its effective components, as cached for read views."""

    id: UUID
    name: str | None
    model_year_id: UUID
    year: int
    components: dict[ComponentType, Resolution] = Field(default_factory=dict)


def check_window(effective_from_year: int | None, effective_to_year: int | None) -> None:
    """Reject inverted effective windows.

    Raises:
        InvalidWindowError: If both bounds are set and from > to
    """
    if (
        effective_from_year is not None
        and effective_to_year is not None
        and effective_from_year > effective_to_year
    ):
        raise InvalidWindowError(effective_from_year, effective_to_year)
