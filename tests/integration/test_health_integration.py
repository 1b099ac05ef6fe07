import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check_endpoint(client: AsyncClient):
    """Health check is public and sits outside the API prefix."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["status"] == "healthy"
    assert data["service"] == "Asthma API"
    assert "version" in data


@pytest.mark.asyncio
async def test_unknown_route_returns_404(client: AsyncClient):
    response = await client.get("/api/nope")

    assert response.status_code == 404
