"""Shared dependencies for Motocat web routes.

Dependencies are injected using FastAPI's Depends() system and can be
replaced through ``app.dependency_overrides`` in tests.

Usage:
    from fastapi import Depends
    from motocat.web.dependencies import get_service

    @router.get("/endpoint")
    async def handler(service: AssignmentService = Depends(get_service)):
        ...
"""

from __future__ import annotations

from motocat.assignments.service import AssignmentService, build_service

# Global singleton for the service
_service: AssignmentService | None = None


def get_service() -> AssignmentService:
    """Get the AssignmentService singleton, built from configuration on first use."""
    global _service
    if _service is None:
        _service = build_service()
    return _service


async def shutdown_service() -> None:
    """Flush pending cache invalidations and drop the singleton."""
    global _service
    if _service is not None:
        await _service.close()
        _service = None
