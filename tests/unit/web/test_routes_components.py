"""Tests for motocat.web.routes.components with a mocked service."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from motocat.models import ComponentType, ComponentUsageStats, LinkingStats, UsageReport
from motocat.web.dependencies import get_service
from motocat.web.routes import components


@pytest.fixture
def mock_service():
    service = MagicMock()
    service.linking_stats = AsyncMock()
    service.can_delete = AsyncMock()
    service.delete_component = AsyncMock(return_value=None)
    return service


@pytest.fixture
def client(mock_service):
    app = FastAPI()
    app.include_router(components.router)
    app.dependency_overrides[get_service] = lambda: mock_service
    return TestClient(app)


def test_stats_route_is_not_shadowed_by_type_route(client, mock_service):
    mock_service.linking_stats.return_value = LinkingStats(
        total_assignments=3, assignments_by_type={"engine": 3}, models_with_components=3
    )

    response = client.get("/components/stats")

    assert response.status_code == 200
    assert response.json()["total_assignments"] == 3


def test_usage(client, mock_service):
    component_id = uuid4()
    mock_service.can_delete.return_value = UsageReport(
        component_type=ComponentType.BRAKE_SYSTEM,
        component_id=component_id,
        can_delete=False,
        usage_count=1,
        affected_trims=["Speed Twin - Standard"],
    )

    response = client.get(f"/components/brake_system/{component_id}/usage")

    assert response.status_code == 200
    assert response.json()["can_delete"] is False
    assert response.json()["affected_trims"] == ["Speed Twin - Standard"]
    mock_service.can_delete.assert_awaited_once_with(ComponentType.BRAKE_SYSTEM, component_id)


def test_delete(client, mock_service):
    component_id = uuid4()

    response = client.delete(f"/components/suspension/{component_id}")

    assert response.status_code == 204
    mock_service.delete_component.assert_awaited_once_with(
        ComponentType.SUSPENSION, component_id
    )


def test_usage_stats(client, mock_service):
    component_id = uuid4()
    mock_service.usage_stats = AsyncMock(
        return_value=ComponentUsageStats(
            component_id=component_id,
            component_type=ComponentType.WHEEL,
            usage_count=3,
            model_count=1,
            trim_count=2,
        )
    )

    response = client.get(f"/components/wheel/{component_id}/stats")

    assert response.status_code == 200
    assert response.json()["trim_count"] == 2
