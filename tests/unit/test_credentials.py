"""Tests for credential verifiers."""

import pytest

from logmonitor.core.credentials import (
    DelegatingCredentialVerifier,
    StaticCredentialVerifier,
)
from logmonitor.core.ports import CredentialVerifier
from tests.helpers import ADMIN

pytestmark = [pytest.mark.unit, pytest.mark.core, pytest.mark.tier(0)]


class TestStaticCredentialVerifier:
    """Tests for the single-principal verifier."""

    def test_implements_credential_verifier(self) -> None:
        assert isinstance(StaticCredentialVerifier(ADMIN), CredentialVerifier)

    async def test_accepts_configured_principal(self) -> None:
        verifier = StaticCredentialVerifier(ADMIN)
        assert await verifier.verify("admin", "password") is True

    @pytest.mark.parametrize(
        ("username", "password"),
        [
            ("admin", "wrong"),
            ("root", "password"),
            ("Admin", "password"),
            ("admin", "password "),
            ("", ""),
        ],
    )
    async def test_rejects_anything_else(self, username: str, password: str) -> None:
        verifier = StaticCredentialVerifier(ADMIN)
        assert await verifier.verify(username, password) is False

    async def test_handles_non_ascii_input(self) -> None:
        verifier = StaticCredentialVerifier(ADMIN)
        assert await verifier.verify("ädmin", "pässword") is False


class TestDelegatingCredentialVerifier:
    """Tests for the verifier backed by an external check."""

    async def test_delegates_to_check(self) -> None:
        seen: list[tuple[str, str]] = []

        async def check(username: str, password: str) -> bool:
            seen.append((username, password))
            return username == "alice"

        verifier = DelegatingCredentialVerifier(check)

        assert isinstance(verifier, CredentialVerifier)
        assert await verifier.verify("alice", "x") is True
        assert await verifier.verify("bob", "y") is False
        assert seen == [("alice", "x"), ("bob", "y")]
