"""Assignment and resolution routes.

Routes:
- GET    /configurations/{configuration_id}/components                   - Effective components (all types)
- GET    /configurations/{configuration_id}/components/{component_type}  - Effective component (one type)
- PUT    /configurations/{configuration_id}/components/{component_type}  - Set or clear a trim override
- POST   /configurations/{configuration_id}/copy                         - Copy a trim to other years
- GET    /model-years/{year_id}/configurations                           - Trims of a year with components
- POST   /assignments/{component_type}                                   - Assign a component to many models
- GET    /models/{model_id}/assignments                                  - Model default assignments
- DELETE /models/{model_id}/assignments/{component_type}                 - Remove a model assignment
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from motocat.assignments.service import AssignmentService
from motocat.models import (
    ComponentType,
    ConfigurationView,
    ModelComponentAssignment,
    Resolution,
    TrimCopyResult,
)
from motocat.web.dependencies import get_service
from motocat.web.models import (
    AssignRequest,
    AssignResponse,
    CopyTrimRequest,
    OverrideRequest,
    RemoveResponse,
)

router = APIRouter(tags=["assignments"])


# ============================================================================
# Resolution
# ============================================================================


@router.get("/configurations/{configuration_id}/components")
async def resolve_all(
    configuration_id: UUID,
    service: AssignmentService = Depends(get_service),
) -> dict[ComponentType, Resolution]:
    return await service.resolve_all(configuration_id)


@router.get("/configurations/{configuration_id}/components/{component_type}")
async def resolve(
    configuration_id: UUID,
    component_type: ComponentType,
    service: AssignmentService = Depends(get_service),
) -> Resolution:
    return await service.resolve(configuration_id, component_type)


@router.get("/model-years/{year_id}/configurations")
async def configurations_for_year(
    year_id: UUID,
    service: AssignmentService = Depends(get_service),
) -> list[ConfigurationView]:
    return await service.configurations_for_year(year_id)


# ============================================================================
# Trim overrides
# ============================================================================


@router.put("/configurations/{configuration_id}/components/{component_type}")
async def set_trim_override(
    configuration_id: UUID,
    component_type: ComponentType,
    body: OverrideRequest,
    service: AssignmentService = Depends(get_service),
) -> Resolution:
    """Set the trim's component (override on), or clear it with a null id (override off).

    Returns the effective component after the change.
    """
    return await service.set_trim_override(configuration_id, component_type, body.component_id)


@router.post("/configurations/{configuration_id}/copy")
async def copy_trim(
    configuration_id: UUID,
    body: CopyTrimRequest,
    service: AssignmentService = Depends(get_service),
) -> TrimCopyResult:
    return await service.copy_trim_to_years(configuration_id, body.target_year_ids)


# ============================================================================
# Model assignments
# ============================================================================


@router.post("/assignments/{component_type}")
async def assign(
    component_type: ComponentType,
    body: AssignRequest,
    service: AssignmentService = Depends(get_service),
) -> AssignResponse:
    """Assign a component to every listed model.

    Always 200: per-model failures are reported in ``results``.
    """
    result = await service.assign(
        component_type,
        body.component_id,
        body.model_ids,
        effective_from_year=body.effective_from_year,
        effective_to_year=body.effective_to_year,
        notes=body.notes,
    )
    return AssignResponse(
        component_type=component_type.value,
        component_id=body.component_id,
        summary=result.summary,
        succeeded=len(result.succeeded),
        failed=len(result.failed),
        results=result.results,
    )


@router.get("/models/{model_id}/assignments")
async def list_assignments(
    model_id: UUID,
    service: AssignmentService = Depends(get_service),
) -> list[ModelComponentAssignment]:
    return await service.list_assignments(model_id)


@router.delete("/models/{model_id}/assignments/{component_type}")
async def remove_assignment(
    model_id: UUID,
    component_type: ComponentType,
    service: AssignmentService = Depends(get_service),
) -> RemoveResponse:
    """Remove a model assignment. Removing a missing one succeeds."""
    removed = await service.remove(model_id, component_type)
    return RemoveResponse(removed=removed)
