"""
Subscription plan endpoint tests, plus the timing/query-count headers and
the health endpoint.
"""
import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, name: str, **extra) -> dict:
    resp = await client.post("/api/v1/plans", json={"name": name, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["cache"]["enabled"] is False
    assert set(body["cache"]) == {"enabled", "hits", "misses", "hit_rate"}


@pytest.mark.asyncio
async def test_create_plan(async_client: AsyncClient):
    plan = await _create(async_client, "Pro Plan", price_cents=2900, description="For small teams")
    assert plan["slug"] == "pro-plan"
    assert plan["price_cents"] == 2900
    assert plan["currency"] == "USD"
    assert plan["interval"] == "month"
    assert plan["is_active"] is True


@pytest.mark.asyncio
async def test_create_plan_twice_returns_409(async_client: AsyncClient):
    await _create(async_client, "Pro Plan")
    resp = await async_client.post("/api/v1/plans", json={"name": "Pro Plan"})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Subscription Plan already exists"


@pytest.mark.asyncio
async def test_create_plan_invalid_interval(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/plans", json={"name": "Pro Plan", "interval": "week"})
    assert resp.status_code == 422
    error = resp.json()["errors"][0]
    assert error["field"] == "interval"
    assert error["message"] == "interval must be one of: month, year"


@pytest.mark.asyncio
async def test_list_plans_page(async_client: AsyncClient):
    for i in range(12):
        await _create(async_client, f"Plan {i:02d}")
    resp = await async_client.get("/api/v1/plans", params={"limit": 5, "skip": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["edges"]) == 5
    assert body["page_info"] == {"total": 12, "limit": 5, "skip": 5, "has_more": True}


@pytest.mark.asyncio
async def test_list_plans_default_page(async_client: AsyncClient):
    for i in range(3):
        await _create(async_client, f"Plan {i:02d}")
    body = (await async_client.get("/api/v1/plans")).json()
    assert body["page_info"] == {"total": 3, "limit": 10, "skip": 0, "has_more": False}


@pytest.mark.asyncio
async def test_get_plan(async_client: AsyncClient):
    plan = await _create(async_client, "Pro Plan")
    resp = await async_client.get(f"/api/v1/plans/{plan['id']}")
    assert resp.status_code == 200
    assert resp.json()["slug"] == "pro-plan"


@pytest.mark.asyncio
async def test_rename_plan_to_existing_slug_returns_409(async_client: AsyncClient):
    await _create(async_client, "Pro Plan")
    basic = await _create(async_client, "Basic Plan")
    resp = await async_client.patch(f"/api/v1/plans/{basic['id']}", json={"name": "pro plan"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_plan(async_client: AsyncClient):
    plan = await _create(async_client, "Pro Plan")
    resp = await async_client.patch(f"/api/v1/plans/{plan['id']}", json={"name": "Pro Plan Plus", "interval": "year"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["modified"] == 1
    assert body["edges"][0]["slug"] == "pro-plan-plus"
    assert body["edges"][0]["interval"] == "year"


@pytest.mark.asyncio
async def test_update_plan_empty_body_is_422(async_client: AsyncClient):
    plan = await _create(async_client, "Pro Plan")
    resp = await async_client.patch(f"/api/v1/plans/{plan['id']}", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_delete_plan(async_client: AsyncClient):
    plan = await _create(async_client, "Pro Plan")
    resp = await async_client.delete(f"/api/v1/plans/{plan['id']}")
    assert resp.status_code == 200
    assert resp.json()["edges"][0]["id"] == plan["id"]
    assert (await async_client.get("/api/v1/plans/count")).json() == {"count": 0}


@pytest.mark.asyncio
async def test_delete_missing_plan_is_404(async_client: AsyncClient):
    resp = await async_client.delete("/api/v1/plans/missing")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_timing_headers(async_client: AsyncClient):
    await _create(async_client, "Pro Plan")
    resp = await async_client.get("/api/v1/plans")
    assert "x-response-time-ms" in resp.headers
    # COUNT + page SELECT
    assert int(resp.headers["x-query-count"]) >= 2
