"""Issuing and verifying signed, time-bounded authentication tokens.

Tokens are HS256 JWTs carrying a ``username`` claim and an ``exp`` claim.
They are never stored server side, so verification re-derives validity from
the token itself plus the current time on every request.
"""

import time
from collections.abc import Callable
from datetime import timedelta

import jwt

from logmonitor.core.errors import (
    AuthError,
    AuthErrorKind,
    ConfigurationError,
    TokenIssueError,
)
from logmonitor.core.models import Token

TOKEN_TTL = timedelta(hours=24)
SIGNING_ALGORITHM = "HS256"


class TokenService:
    """Issues and verifies tokens for authenticated principals.

    Args:
        secret: Symmetric signing key. Must be non-empty.
        ttl: Validity window added to the issuance instant.
        clock: Returns the current Unix time; injectable for tests.

    Raises:
        ConfigurationError: If the secret is missing or empty.
    """

    def __init__(
        self,
        secret: str | bytes | None,
        ttl: timedelta = TOKEN_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ConfigurationError("JWT signing secret is empty")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, username: str) -> Token:
        """Create a token for an already-authenticated username."""
        expires_at = int(self._clock() + self._ttl.total_seconds())
        claims = {"username": username, "exp": expires_at}
        try:
            value = jwt.encode(claims, self._secret, algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenIssueError("Error generating token") from exc
        return Token(value=value, username=username, expires_at=float(expires_at))

    def verify(self, token: str) -> str:
        """Verify a token and return the username it asserts.

        The signature and structure are checked by PyJWT. Expiry is checked
        here against ``clock`` rather than trusted to the decoder, so a
        manipulated clock is honoured consistently.

        Raises:
            AuthError: ``TOKEN_INVALID`` for signature or structure failures,
                ``TOKEN_EXPIRED`` for a validly signed but lapsed token.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[SIGNING_ALGORITHM],
                options={"verify_exp": False, "require": ["exp"]},
            )
        except jwt.PyJWTError as exc:
            raise AuthError(AuthErrorKind.TOKEN_INVALID) from exc

        username = claims.get("username")
        expires_at = claims.get("exp")
        if not isinstance(username, str) or not username:
            raise AuthError(AuthErrorKind.TOKEN_INVALID)
        if isinstance(expires_at, bool) or not isinstance(expires_at, int | float):
            raise AuthError(AuthErrorKind.TOKEN_INVALID)

        if not expires_at > self._clock():
            raise AuthError(AuthErrorKind.TOKEN_EXPIRED)
        return username
