"""Bearer-token authentication gate for protected routes."""

import logging

from fastapi import Request

from logmonitor.core.errors import AuthError, AuthErrorKind
from logmonitor.core.tokens import TokenService

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


class AuthGate:
    """Extracts, parses and validates the bearer token of a request.

    The gate never touches the request body or the handler; callers decide
    how to render a rejection.
    """

    def __init__(self, token_service: TokenService) -> None:
        self.token_service = token_service

    def authenticate(self, authorization: str | None) -> str:
        """Return the verified username for an ``Authorization`` header value.

        Raises:
            AuthError: ``MISSING_TOKEN`` when the header is absent or empty,
                ``MALFORMED_HEADER`` unless it is exactly ``Bearer <token>``,
                ``TOKEN_INVALID`` / ``TOKEN_EXPIRED`` from verification.
        """
        if not authorization:
            raise AuthError(AuthErrorKind.MISSING_TOKEN)

        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
            raise AuthError(AuthErrorKind.MALFORMED_HEADER)

        return self.token_service.verify(parts[1])


def auth_error_body(exc: AuthError) -> dict[str, str]:
    """Machine-readable 401 body."""
    return {"error": exc.message, "kind": exc.kind.value}


def current_username(request: Request) -> str:
    """Dependency: the username the gate bound to this request."""
    return request.state.username
