"""Framework-agnostic ASGI middleware.

SecurityHeadersMiddleware is the outermost pipeline stage: it runs before
any routing decision, so rejected, missing and failed requests carry the
same headers as successful ones.
"""

from collections.abc import Callable, Coroutine, Iterable
from typing import Any

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

DEFAULT_SECURITY_HEADERS: tuple[tuple[str, str], ...] = (
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "DENY"),
    ("X-XSS-Protection", "1; mode=block"),
)


class SecurityHeadersMiddleware:
    """ASGI middleware that injects security headers into every HTTP response.

    Headers the wrapped app already set with the same name are replaced,
    never duplicated.
    """

    def __init__(
        self,
        app: ASGIApp,
        headers: Iterable[tuple[str, str]] = DEFAULT_SECURITY_HEADERS,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            headers: (name, value) pairs to set on each response.
        """
        self.app = app
        self.headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in headers
        ]
        self._names = {name for name, _ in self.headers}

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                existing = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() not in self._names
                ]
                message = {**message, "headers": existing + self.headers}
            await send(message)

        await self.app(scope, receive, wrapped_send)
