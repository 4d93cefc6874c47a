import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from worknote.api.main import create_app
from worknote.boundary.db import get_async_db


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def override_db(session):
    async def _get_db():
        yield session

    return _get_db


def test_health_check(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Server Healthy"}


def test_health_check_should_echo_correlation_id(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "req-123"})
    assert response.headers["X-Correlation-ID"] == "req-123"


def test_health_check_should_generate_correlation_id(client):
    response = client.get("/api/v1/health")
    assert response.headers["X-Correlation-ID"]


def test_health_check_db(client):
    session = AsyncMock()
    client.app.dependency_overrides[get_async_db] = override_db(session)

    response = client.get("/api/v1/health/db")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Database connection OK"}
    session.execute.assert_awaited_once()


def test_health_check_db_unavailable(client):
    session = AsyncMock()
    session.execute.side_effect = ConnectionRefusedError("db down")
    client.app.dependency_overrides[get_async_db] = override_db(session)

    response = client.get("/api/v1/health/db")

    assert response.status_code == 503
    assert response.json()["detail"] == "Database connection failed"
