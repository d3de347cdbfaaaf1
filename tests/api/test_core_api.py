"""Tests for the status endpoints."""

import httpx

from recallion.api.endpoints.core import VERSION
from recallion.main import app


class TestCoreEndpoints:
    """Tests for / and /health."""

    async def test_root(self, client) -> None:
        """Should report the API name and version."""
        body = (await client.get("/")).json()
        assert body["version"] == VERSION
        assert body["status"] == "running"

    async def test_health_ready(self, client) -> None:
        """Should report healthy once services are published."""
        response = await client.get("/health")
        assert response.json()["status"] == "healthy"
        assert response.headers["x-request-id"]

    async def test_health_before_startup(self) -> None:
        """Should report starting while services are missing."""
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://recallion.test") as http:
            assert (await http.get("/health")).json()["status"] == "starting"

    async def test_request_id_is_echoed(self, client) -> None:
        """Should echo a caller-supplied request id."""
        response = await client.get("/", headers={"X-Request-ID": "req-42"})
        assert response.headers["x-request-id"] == "req-42"

    async def test_services_missing_is_unavailable(self, auth_a) -> None:
        """Should answer 503 when a route needs services that are not initialized."""
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://recallion.test") as http:
            response = await http.get("/api/v1/memories", headers=auth_a)
        assert response.status_code == 503
