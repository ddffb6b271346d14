"""Tests for /api/users/me."""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS

PROFILE = {
    "email": "test1@example.com",
    "name": "Test User 1",
    "avatar_url": "https://example.com/a.png",
    "provider": "google",
}


@pytest.mark.asyncio
async def test_profile_not_found_before_sign_in(client: AsyncClient):
    resp = await client.get("/api/users/me", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_upsert_and_read_profile(client: AsyncClient):
    resp = await client.put("/api/users/me", json=PROFILE, headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["provider"] == "google"

    resp = await client.put(
        "/api/users/me",
        json={**PROFILE, "name": "Renamed"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200

    resp = await client.get("/api/users/me", headers=AUTH_HEADERS)
    data = resp.json()
    assert data["id"] == AUTH_HEADERS["X-User-Id"]
    assert data["name"] == "Renamed"


@pytest.mark.asyncio
async def test_profile_requires_user_header(client: AsyncClient):
    resp = await client.put("/api/users/me", json=PROFILE)
    assert resp.status_code == 422
