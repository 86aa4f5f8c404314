"""Core domain models for the log monitoring service."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Credentials:
    """A username/password pair presented at login.

    Attributes:
        username: The claimed identity.
        password: The plaintext password supplied by the client.
    """

    username: str
    password: str


@dataclass(frozen=True)
class Token:
    """A signed, self-contained authentication token.

    Attributes:
        value: The encoded token string handed to the client.
        username: The principal the token asserts.
        expires_at: Unix timestamp (seconds) after which the token is unusable.
    """

    value: str
    username: str
    expires_at: float


@dataclass(frozen=True)
class NewLogRecord:
    """A validated log record that has not been stored yet.

    Attributes:
        message: The log message. Never empty.
        level: Severity tag (e.g., info, error). Empty when not supplied.
        service: Origin tag of the client application. Empty when not supplied.
    """

    message: str
    level: str = ""
    service: str = ""


@dataclass(frozen=True)
class LogRecord:
    """A stored log record.

    Attributes:
        id: Server-assigned identifier, unique and increasing.
        level: Severity tag.
        message: The log message.
        service: Origin tag.
        created_at: Server-assigned creation time (UTC).
    """

    id: int
    level: str
    message: str
    service: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape served by GET /logs."""
        created_at = self.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return {
            "id": self.id,
            "level": self.level,
            "message": self.message,
            "service": self.service,
            "created_at": created_at.isoformat(timespec="seconds"),
        }
