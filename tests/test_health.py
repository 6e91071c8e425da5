"""Health check and general endpoint tests."""

import pytest
from httpx import AsyncClient

import fintrack.main as main_module


class FakeRedis:
    def __init__(self, healthy: bool = True):
        self.healthy = healthy

    async def ping(self):
        if not self.healthy:
            raise ConnectionError("redis down")
        return True


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient, monkeypatch):
    """Test health check endpoint."""

    async def fake_get_redis():
        return FakeRedis()

    monkeypatch.setattr(main_module, "get_redis", fake_get_redis)

    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app"] == "FinTrack"
    assert data["database"] == "ok"
    assert data["redis"] == "ok"


@pytest.mark.asyncio
async def test_health_check_degraded_without_redis(client: AsyncClient, monkeypatch):
    async def fake_get_redis():
        return FakeRedis(healthy=False)

    monkeypatch.setattr(main_module, "get_redis", fake_get_redis)

    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["redis"] == "error"


@pytest.mark.asyncio
async def test_nonexistent_endpoint(client: AsyncClient):
    """Test 404 for nonexistent endpoint."""
    response = await client.get("/api/v1/nonexistent")
    assert response.status_code == 404
