"""FastAPI application: login, log record CRUD, health and metrics endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, FastAPI, Path, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from logmonitor.adapters.frameworks.asgi import SecurityHeadersMiddleware
from logmonitor.adapters.frameworks.auth import AuthGate, auth_error_body, current_username
from logmonitor.adapters.frameworks.pipeline import create_route_class
from logmonitor.core.errors import (
    AuthError,
    InvalidCredentialsError,
    LogMonitorError,
    NotFoundError,
    ValidationError,
)
from logmonitor.core.metrics import MetricsRegistry
from logmonitor.core.models import NewLogRecord
from logmonitor.core.ports import CredentialVerifier, LogRecordStoragePort
from logmonitor.core.tokens import TokenService

logger = logging.getLogger(__name__)

# SQLite stores ids as signed 64-bit integers.
LogId = Annotated[int, Path(ge=1, le=2**63 - 1)]


class _RequestBody(BaseModel):
    """Base for request bodies whose strings must be encodable as UTF-8."""

    @field_validator("*")
    @classmethod
    def _encodable(cls, value: str) -> str:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValueError("string is not valid UTF-8") from exc
        return value


class LoginRequest(_RequestBody):
    """POST /login body."""

    username: str = ""
    password: str = ""


class LogMessageRequest(_RequestBody):
    """PUT/PATCH /logs/{log_id} body."""

    message: str = ""


class NewLogRequest(LogMessageRequest):
    """POST /logs body. level and service are optional tags."""

    level: str = ""
    service: str = ""


def _require_message(message: str) -> str:
    if not message:
        raise ValidationError("Message cannot be empty")
    return message


def create_auth_router(
    credentials: CredentialVerifier,
    token_service: TokenService,
    metrics: MetricsRegistry,
) -> APIRouter:
    """Create the public router exposing POST /login."""
    router = APIRouter(route_class=create_route_class(metrics), tags=["auth"])

    @router.post("/login")
    async def login(body: LoginRequest) -> dict[str, str]:
        """Authenticate the principal and return a signed token."""
        if not await credentials.verify(body.username, body.password):
            logger.warning("Failed login attempt for user %r", body.username)
            raise InvalidCredentialsError()
        token = token_service.issue(body.username)
        return {"token": token.value}

    return router


def create_log_router(
    storage: LogRecordStoragePort,
    gate: AuthGate,
    metrics: MetricsRegistry,
) -> APIRouter:
    """Create the protected router exposing /logs CRUD."""
    router = APIRouter(route_class=create_route_class(metrics, gate), tags=["logs"])

    @router.get("/logs")
    async def get_logs() -> list[dict[str, Any]]:
        """Return all log records."""
        return [record.to_dict() for record in await storage.list()]

    @router.post("/logs", status_code=201)
    async def add_log(
        body: NewLogRequest,
        username: Annotated[str, Depends(current_username)],
    ) -> dict[str, str]:
        """Store a new log record."""
        record = NewLogRecord(
            message=_require_message(body.message),
            level=body.level,
            service=body.service,
        )
        created = await storage.create(record)
        logger.debug("Log %s added by %s", created.id, username)
        return {"message": "Log added successfully"}

    @router.put("/logs/{log_id}")
    async def update_log(log_id: LogId, body: LogMessageRequest) -> dict[str, str]:
        """Replace the message of a log record."""
        message = _require_message(body.message)
        if not await storage.update_message(log_id, message):
            raise NotFoundError("Log not found")
        return {"message": "Log updated successfully"}

    @router.patch("/logs/{log_id}")
    async def patch_log(log_id: LogId, body: LogMessageRequest) -> dict[str, str]:
        """Replace the message of a log record (same semantics as PUT)."""
        message = _require_message(body.message)
        if not await storage.update_message(log_id, message):
            raise NotFoundError("Log not found")
        return {"message": "Log patched successfully"}

    @router.delete("/logs/{log_id}")
    async def delete_log(log_id: LogId) -> dict[str, str]:
        """Delete a log record."""
        if not await storage.delete(log_id):
            raise NotFoundError("Log not found")
        return {"message": "Log deleted successfully"}

    return router


def create_ops_router(metrics: MetricsRegistry) -> APIRouter:
    """Create the unauthenticated, unmetered /health and /metrics router."""
    router = APIRouter(tags=["ops"])

    @router.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @router.get("/metrics")
    async def get_metrics() -> Response:
        """Return metrics in Prometheus text format."""
        return Response(content=metrics.exposition(), media_type=metrics.content_type)

    return router


async def _log_monitor_error_handler(
    _request: Request, exc: LogMonitorError
) -> JSONResponse:
    if isinstance(exc, AuthError):
        return JSONResponse(status_code=exc.status_code, content=auth_error_body(exc))
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    if any((error.get("loc") or ("",))[0] == "path" for error in exc.errors()):
        return JSONResponse(status_code=400, content={"error": "Invalid ID"})
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


def create_app(
    storage: LogRecordStoragePort,
    token_service: TokenService,
    credentials: CredentialVerifier,
    metrics: MetricsRegistry,
) -> FastAPI:
    """Assemble the log monitoring API.

    Every collaborator is passed in explicitly; the app holds no module-level
    state, so tests can build as many independent apps as they need.

    Args:
        storage: Storage adapter implementing LogRecordStoragePort.
        token_service: Issues tokens at login and verifies them in the gate.
        credentials: Authentication source consulted at login.
        metrics: Registry that receives request observations and backs /metrics.

    Returns:
        FastAPI application with security headers applied to every response.
    """
    app = FastAPI(
        title="Log Monitoring API",
        description="Stores and retrieves structured log records.",
        version="1.0.0",
    )
    gate = AuthGate(token_service)
    app.include_router(create_ops_router(metrics))
    app.include_router(create_auth_router(credentials, token_service, metrics))
    app.include_router(create_log_router(storage, gate, metrics))

    app.add_exception_handler(LogMonitorError, _log_monitor_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_middleware(SecurityHeadersMiddleware)
    return app
