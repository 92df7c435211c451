"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return status, version and database check."""
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_ignores_bad_token(client):
    """Health is public — a garbage token doesn't matter."""
    resp = await client.get("/api/health", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 200
