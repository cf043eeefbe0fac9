"""Middleware tests: request ID, CORS, error rendering."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from gobs.main import create_app


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_malformed_request_id_replaced(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "bad id <script>"})
    assert response.headers["x-request-id"] != "bad id <script>"
    assert len(response.headers["x-request-id"]) == 36


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/v1/portfolio",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_unknown_route_returns_json_404(client: AsyncClient) -> None:
    response = await client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


@pytest.mark.asyncio
async def test_validation_error_shape(client: AsyncClient) -> None:
    response = await client.post("/api/v1/trades/buy", json={"symbol": "BTC"}, headers={"X-User-Id": "1"})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert data["errors"][0]["loc"] == ["body", "amount_usd"]


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(client: AsyncClient) -> None:
    response = await client.get("/api/v1/portfolio")
    assert response.status_code == 401
    assert response.json() == {"detail": "Authentication required", "code": "UNAUTHORIZED"}


@pytest.mark.asyncio
async def test_malformed_identity_is_unauthorized(client: AsyncClient) -> None:
    response = await client.get("/api/v1/portfolio", headers={"X-User-Id": "abc"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_unhandled_error_is_opaque_500(settings, services) -> None:
    services.executor.get_trade_stats = AsyncMock(side_effect=RuntimeError("connection reset by db-7"))
    app = create_app(settings)
    app.state.services = services
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/api/v1/trades/stats", headers={"X-User-Id": "1"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "db-7" not in response.text
