"""Per-route request pipeline: auth gate, then metrics around the handler.

FastAPI builds one handler per route; the route class returned by
create_route_class wraps that handler so the order of stages is fixed and
explicit:

    [auth gate] -> metrics wrapper(handler) -> response

Security headers are applied one level up by SecurityHeadersMiddleware.
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException

from logmonitor.adapters.frameworks.auth import AuthGate, auth_error_body
from logmonitor.core.errors import AuthError, LogMonitorError
from logmonitor.core.metrics import MetricsRegistry

logger = logging.getLogger(__name__)

RouteHandler = Callable[[Request], Awaitable[Response]]

INTERNAL_ERROR_BODY = {"error": "Internal server error"}


def status_for_exception(exc: Exception) -> int:
    """Status code an application error will be rendered with."""
    if isinstance(exc, LogMonitorError):
        return exc.status_code
    if isinstance(exc, RequestValidationError):
        return 400
    if isinstance(exc, HTTPException):
        return exc.status_code
    return 500


async def measure(
    metrics: MetricsRegistry, handler: RouteHandler, request: Request, endpoint: str
) -> Response:
    """Invoke ``handler`` and record its duration and final status.

    Application errors keep propagating to the registered exception
    handlers; anything else is logged and turned into a generic 500 so it
    never escapes the serving task.
    """
    start = time.perf_counter()
    status = 500
    try:
        response = await handler(request)
        status = response.status_code
        return response
    except (LogMonitorError, RequestValidationError, HTTPException) as exc:
        status = status_for_exception(exc)
        raise
    except Exception:
        logger.exception("Unhandled error in %s %s", request.method, endpoint)
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)
    finally:
        metrics.observe(request.method, endpoint, status, time.perf_counter() - start)


def create_route_class(
    metrics: MetricsRegistry, gate: AuthGate | None = None
) -> type[APIRoute]:
    """Build an APIRoute subclass bound to a metrics registry and optional gate.

    Args:
        metrics: Registry receiving one observation per handled request.
        gate: When given, every route of the router is protected. Rejected
            requests get a 401 before the body is parsed or the handler runs,
            and are not metered.

    Returns:
        A route class for ``APIRouter(route_class=...)``.
    """

    class MeteredRoute(APIRoute):
        def get_route_handler(self) -> RouteHandler:
            handler = super().get_route_handler()
            endpoint = self.path_format

            async def route_handler(request: Request) -> Response:
                if gate is not None:
                    try:
                        username = gate.authenticate(request.headers.get("Authorization"))
                    except AuthError as exc:
                        logger.warning(
                            "Rejected %s %s: %s",
                            request.method,
                            request.url.path,
                            exc.kind.value,
                        )
                        return JSONResponse(status_code=401, content=auth_error_body(exc))
                    request.state.username = username
                return await measure(metrics, handler, request, endpoint)

            return route_handler

    return MeteredRoute
