"""Request and response bodies for the assignment API."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from motocat.models import AssignmentOutcome, check_window


class AssignRequest(BaseModel):
    component_id: UUID
    model_ids: list[UUID] = Field(min_length=1)
    effective_from_year: int | None = None
    effective_to_year: int | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def validate_window(self) -> AssignRequest:
        check_window(self.effective_from_year, self.effective_to_year)
        return self


class AssignResponse(BaseModel):
    component_type: str
    component_id: UUID
    summary: str
    succeeded: int
    failed: int
    results: list[AssignmentOutcome]


class OverrideRequest(BaseModel):
    # None clears the override and falls back to the model default
    component_id: UUID | None = None


class CopyTrimRequest(BaseModel):
    target_year_ids: list[UUID] = Field(min_length=1)


class RemoveResponse(BaseModel):
    removed: bool
