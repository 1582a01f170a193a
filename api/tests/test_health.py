"""Tests for health endpoints."""

from fastapi.testclient import TestClient

from src.health import set_component_status_getter


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_without_database(client: TestClient) -> None:
    """Readiness fails while the database is not connected."""
    response = client.get("/health/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["components"]["database"] is False
    assert "environment" in data
    assert "debug" in data


def test_readiness_with_database(client: TestClient) -> None:
    """Readiness only requires the database."""
    from src.main import get_component_status

    set_component_status_getter(
        lambda: {"database": True, "redis": False, "storage": False, "email": False}
    )
    try:
        response = client.get("/health/ready")
    finally:
        set_component_status_getter(get_component_status)

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "electrofun"
    assert "version" in data
    assert "environment" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "Electrofun" in data["message"]
    assert "version" in data
