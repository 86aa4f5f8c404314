"""Shared test fixtures for all test modules."""

import logging
import time
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import httpx
import pytest

from logmonitor.adapters.frameworks.asgi import Receive, Scope, Send
from logmonitor.adapters.frameworks.fastapi import create_app
from logmonitor.adapters.storage.in_memory import InMemoryLogRecordStorage
from logmonitor.core.credentials import StaticCredentialVerifier
from logmonitor.core.metrics import MetricsRegistry
from logmonitor.core.ports import LogRecordStoragePort
from logmonitor.core.tokens import TokenService
from tests.helpers import ADMIN, TEST_SECRET, FakeClock


@pytest.fixture
def log_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for log storage tests."""
    return str(tmp_path / "logs.db")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_service() -> TokenService:
    """Token service using the wall clock and the shared test secret."""
    return TokenService(TEST_SECRET)


@pytest.fixture
def log_storage() -> InMemoryLogRecordStorage:
    """Fresh in-memory log record storage."""
    return InMemoryLogRecordStorage()


@pytest.fixture
def metrics() -> Generator[MetricsRegistry]:
    """Metrics registry that is closed after the test."""
    registry = MetricsRegistry()
    yield registry
    registry.close()


@pytest.fixture
def make_app(token_service: TokenService, metrics: MetricsRegistry):
    """Factory fixture building the API around a given storage adapter.

    Usage:
        app = make_app(storage)
    """

    def _make_app(storage: LogRecordStoragePort, tokens: TokenService | None = None):
        return create_app(
            storage=storage,
            token_service=tokens or token_service,
            credentials=StaticCredentialVerifier(ADMIN),
            metrics=metrics,
        )

    return _make_app


@pytest.fixture
def app(make_app, log_storage: InMemoryLogRecordStorage):
    """API backed by the in-memory storage fixture."""
    return make_app(log_storage)


@pytest.fixture
def auth_headers(token_service: TokenService) -> dict[str, str]:
    """Authorization header carrying a valid token for the admin user."""
    token = token_service.issue(ADMIN.username)
    return {"Authorization": f"Bearer {token.value}"}


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client, app):
            async with asgi_test_client(app) as client:
                response = await client.get("/health")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def client(asgi_test_client, app) -> AsyncGenerator[httpx.AsyncClient]:
    """Client bound to the default in-memory app."""
    async with asgi_test_client(app) as test_client:
        yield test_client


# === ASGI Test Fixtures ===


@pytest.fixture
def basic_asgi_app():
    """Basic ASGI app fixture that returns 200 OK."""

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"OK"})

    return app


@pytest.fixture
def asgi_scope():
    """Factory fixture for creating ASGI scope dicts."""

    def _scope(method: str = "GET", path: str = "/test") -> Scope:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": [],
        }

    return _scope


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture."""

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        responses.append(message)

    return send, responses


@pytest.fixture
def restore_root_logger() -> Generator[logging.Logger]:
    """Undo handler and level changes made by configure_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def wall_clock_offset():
    """Factory for clocks shifted from the real time by a fixed offset."""

    def _clock(offset: float):
        return lambda: time.time() + offset

    return _clock
