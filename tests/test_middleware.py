"""Middleware tests: request ID, CORS, error mapping."""

import pytest
from httpx import AsyncClient


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
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.asyncio
async def test_not_found_is_json(authed_client: AsyncClient) -> None:
    response = await authed_client.get("/api/v1/toasts/9999")
    assert response.status_code == 404
    assert response.json() == {"detail": "Toast 9999 not found"}


@pytest.mark.asyncio
async def test_validation_error_format(authed_client: AsyncClient) -> None:
    response = await authed_client.patch("/api/v1/users/me/settings", json={"weekly_toast_day": 9})
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation error"


@pytest.mark.asyncio
async def test_missing_token_is_401(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_401(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_malformed_request_id_replaced(client: AsyncClient) -> None:
    """A request ID that doesn't look like one is swapped for a fresh UUID."""
    response = await client.get("/health", headers={"X-Request-Id": "evil id; drop"})
    assert response.headers["x-request-id"] != "evil id; drop"
    assert len(response.headers["x-request-id"]) == 36


@pytest.mark.asyncio
async def test_cors_preflight_rejects_unused_method(client: AsyncClient) -> None:
    response = await client.options(
        "/api/v1/notes",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "PUT",
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cors_preflight_allows_bearer_header(client: AsyncClient) -> None:
    response = await client.options(
        "/api/v1/notes",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "PATCH",
            "Access-Control-Request-Headers": "authorization,content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-max-age"] == "600"
