"""Integration tests for the request pipeline: headers, gate and metrics."""

import asyncio

import httpx
import pytest

from logmonitor.core.metrics import MetricsRegistry
from logmonitor.core.models import NewLogRecord
from tests.helpers import FailingStorage

pytestmark = [pytest.mark.integration, pytest.mark.asgi, pytest.mark.tier(1)]

SECURITY_HEADERS = {
    "x-content-type-options": "nosniff",
    "x-frame-options": "DENY",
    "x-xss-protection": "1; mode=block",
}


def assert_security_headers(response: httpx.Response) -> None:
    for name, value in SECURITY_HEADERS.items():
        assert response.headers.get_list(name) == [value], name


class TestSecurityHeaders:
    """Every response carries the security headers, whatever its status."""

    async def test_on_success(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert_security_headers(response)

    async def test_on_auth_rejection(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/logs")

        assert response.status_code == 401
        assert_security_headers(response)

    async def test_on_unknown_route(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/does-not-exist")

        assert response.status_code == 404
        assert_security_headers(response)

    async def test_on_validation_error(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.post("/logs", json={"message": ""}, headers=auth_headers)

        assert response.status_code == 400
        assert_security_headers(response)

    async def test_on_storage_failure(
        self, make_app, asgi_test_client, auth_headers: dict[str, str]
    ) -> None:
        async with asgi_test_client(make_app(FailingStorage())) as client:
            response = await client.get("/logs", headers=auth_headers)

        assert response.status_code == 500
        assert_security_headers(response)

    async def test_on_unexpected_exception(
        self,
        make_app,
        asgi_test_client,
        auth_headers: dict[str, str],
        metrics: MetricsRegistry,
    ) -> None:
        """A bug in a handler still yields a headed, metered 500."""
        storage = FailingStorage(RuntimeError("boom"))

        async with asgi_test_client(make_app(storage)) as client:
            response = await client.get("/logs", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert_security_headers(response)
        assert metrics.count("GET", "/logs", 500) == 1


class TestRequestMetrics:
    """Tests for the metrics wrapper around handlers."""

    async def test_successful_request_is_counted_and_timed(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        metrics: MetricsRegistry,
    ) -> None:
        await client.get("/logs", headers=auth_headers)

        assert metrics.count("GET", "/logs", 200) == 1
        assert metrics.observations("GET", "/logs") == 1

    async def test_created_status_is_recorded(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        metrics: MetricsRegistry,
    ) -> None:
        await client.post("/logs", json={"message": "hi"}, headers=auth_headers)

        assert metrics.count("POST", "/logs", 201) == 1

    async def test_samples_are_keyed_by_route_template(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        metrics: MetricsRegistry,
        log_storage,
    ) -> None:
        """Requests to distinct ids aggregate under one endpoint label."""
        for message in ("a", "b", "c"):
            await log_storage.create(NewLogRecord(message=message))

        for log_id in (1, 2, 3):
            await client.put(
                f"/logs/{log_id}", json={"message": "x"}, headers=auth_headers
            )

        assert metrics.count("PUT", "/logs/{log_id}", 200) == 3
        assert metrics.count("PUT", "/logs/1", 200) == 0
        assert "/logs/2" not in metrics.exposition().decode()

    async def test_application_errors_are_recorded_with_their_status(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        metrics: MetricsRegistry,
    ) -> None:
        await client.delete("/logs/99", headers=auth_headers)
        await client.post("/logs", json={"message": ""}, headers=auth_headers)
        await client.post("/login", json={"username": "x", "password": "y"})

        assert metrics.count("DELETE", "/logs/{log_id}", 404) == 1
        assert metrics.count("POST", "/logs", 400) == 1
        assert metrics.count("POST", "/login", 401) == 1

    async def test_rejected_requests_are_not_metered(
        self, client: httpx.AsyncClient, metrics: MetricsRegistry
    ) -> None:
        await client.get("/logs")
        await client.get("/logs", headers={"Authorization": "Bearer nope"})

        assert metrics.count("GET", "/logs", 401) == 0
        assert metrics.observations("GET", "/logs") == 0

    async def test_ops_endpoints_are_not_metered(
        self, client: httpx.AsyncClient, metrics: MetricsRegistry
    ) -> None:
        await client.get("/health")
        await client.get("/metrics")

        text = metrics.exposition().decode()
        assert 'endpoint="/health"' not in text
        assert 'endpoint="/metrics"' not in text

    async def test_concurrent_requests_are_all_counted(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        metrics: MetricsRegistry,
    ) -> None:
        total = 50

        responses = await asyncio.gather(
            *(client.get("/logs", headers=auth_headers) for _ in range(total))
        )

        assert all(r.status_code == 200 for r in responses)
        assert metrics.count("GET", "/logs", 200) == total
        assert metrics.observations("GET", "/logs") == total
