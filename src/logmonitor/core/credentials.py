"""Credential verifiers implementing CredentialVerifier."""

import hmac
from collections.abc import Awaitable, Callable

from logmonitor.core.models import Credentials


class StaticCredentialVerifier:
    """Accepts exactly one configured principal.

    Comparison is exact-match on both fields, done in constant time.
    """

    def __init__(self, principal: Credentials) -> None:
        self._principal = principal

    @property
    def username(self) -> str:
        return self._principal.username

    async def verify(self, username: str, password: str) -> bool:
        user_ok = hmac.compare_digest(
            username.encode("utf-8"), self._principal.username.encode("utf-8")
        )
        password_ok = hmac.compare_digest(
            password.encode("utf-8"), self._principal.password.encode("utf-8")
        )
        return user_ok and password_ok


class DelegatingCredentialVerifier:
    """Defers the decision to an external identity provider.

    Args:
        check: Async callable taking (username, password) and returning
            True when the provider accepts the credentials.
    """

    def __init__(self, check: Callable[[str, str], Awaitable[bool]]) -> None:
        self._check = check

    async def verify(self, username: str, password: str) -> bool:
        return bool(await self._check(username, password))
