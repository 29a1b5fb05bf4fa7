"""Tests for the readiness endpoint."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from valhalla.client import QueryResult
from valhalla.main import app
from valhalla.result import Err, Ok


@pytest.fixture
def client():
    """Test client for health check tests (lifespan not started)."""
    yield TestClient(app)
    if hasattr(app.state, "valhalla"):
        del app.state.valhalla


def test_health_check_store_reachable(client):
    """Health check returns 200 when NOW() succeeds."""
    mock_db = AsyncMock()
    mock_db.now = AsyncMock(
        return_value=Ok(QueryResult("SELECT 1", [{"now": "2026-10-17 05:42:00+00"}]))
    )
    app.state.valhalla = mock_db

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"]["database"]["status"] == "healthy"
    assert data["checks"]["database"]["now"] == "2026-10-17 05:42:00+00"


def test_health_check_store_unreachable(client):
    """Health check returns 503 with the client's error label."""
    mock_db = AsyncMock()
    mock_db.now = AsyncMock(return_value=Err("Pool failed to connect"))
    app.state.valhalla = mock_db

    response = client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["checks"]["database"]["error"] == "Pool failed to connect"


def test_health_check_client_not_initialized(client):
    """Health check returns 503 when the lifespan never opened a client."""
    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["checks"]["database"]["error"] == "Client not initialized"


def test_metrics_endpoint_exposes_query_counters(client):
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "valhalla_queries_total" in response.text
    assert "valhalla_query_duration_seconds" in response.text
