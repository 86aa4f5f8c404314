"""Error taxonomy shared by the pipeline, handlers and storage adapters.

Request-level errors carry the HTTP status they surface as. Process-level
errors (configuration, lifecycle) are never rendered to clients; they end
the process before it starts serving.
"""

from enum import Enum


class LogMonitorError(Exception):
    """Base class for all errors raised by logmonitor."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LogMonitorError):
    """Malformed or missing required input."""

    status_code = 400


class AuthErrorKind(Enum):
    """Distinguishable reasons a protected request was rejected."""

    MISSING_TOKEN = "MissingToken"
    MALFORMED_HEADER = "MalformedHeader"
    TOKEN_INVALID = "TokenInvalid"
    TOKEN_EXPIRED = "TokenExpired"


_AUTH_MESSAGES = {
    AuthErrorKind.MISSING_TOKEN: "Missing token",
    AuthErrorKind.MALFORMED_HEADER: "Invalid token format",
    AuthErrorKind.TOKEN_INVALID: "Invalid token",
    AuthErrorKind.TOKEN_EXPIRED: "Token expired",
}


class AuthError(LogMonitorError):
    """Authentication failure. Always surfaces as 401."""

    status_code = 401

    def __init__(self, kind: AuthErrorKind, message: str | None = None) -> None:
        super().__init__(message or _AUTH_MESSAGES[kind])
        self.kind = kind


class InvalidCredentialsError(LogMonitorError):
    """Login attempted with a username/password that does not match."""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class TokenIssueError(LogMonitorError):
    """A token could not be signed."""

    status_code = 500


class NotFoundError(LogMonitorError):
    """The referenced log record does not exist."""

    status_code = 404


class StorageError(LogMonitorError):
    """Any failure raised by the persistence layer."""

    status_code = 500


class ConfigurationError(LogMonitorError):
    """Invalid process configuration. Fatal at startup."""


class LifecycleError(LogMonitorError):
    """Listener could not be started, or a lifecycle step was re-entered."""
