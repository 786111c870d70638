"""Component catalog routes: usage checks and guarded deletion.

Routes:
- GET    /components/stats                                - Assignment linking statistics
- GET    /components/{component_type}/{component_id}/usage - Can the component be deleted?
- GET    /components/{component_type}/{component_id}/stats - Model and trim reference counts
- DELETE /components/{component_type}/{component_id}       - Delete an unused component
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response

from motocat.assignments.service import AssignmentService
from motocat.models import ComponentType, ComponentUsageStats, LinkingStats, UsageReport
from motocat.web.dependencies import get_service

router = APIRouter(prefix="/components", tags=["components"])


@router.get("/stats")
async def linking_stats(service: AssignmentService = Depends(get_service)) -> LinkingStats:
    return await service.linking_stats()


@router.get("/{component_type}/{component_id}/usage")
async def component_usage(
    component_type: ComponentType,
    component_id: UUID,
    service: AssignmentService = Depends(get_service),
) -> UsageReport:
    return await service.can_delete(component_type, component_id)


@router.get("/{component_type}/{component_id}/stats")
async def component_usage_stats(
    component_type: ComponentType,
    component_id: UUID,
    service: AssignmentService = Depends(get_service),
) -> ComponentUsageStats:
    return await service.usage_stats(component_type, component_id)


@router.delete("/{component_type}/{component_id}", status_code=204)
async def delete_component(
    component_type: ComponentType,
    component_id: UUID,
    service: AssignmentService = Depends(get_service),
) -> Response:
    """Delete a component. 409 with the usage report while anything references it."""
    await service.delete_component(component_type, component_id)
    return Response(status_code=204)
