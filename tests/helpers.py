"""Test doubles and constants shared by test modules."""

from logmonitor.core.errors import StorageError
from logmonitor.core.models import Credentials, LogRecord, NewLogRecord

# HS256 keys shorter than 32 bytes make PyJWT warn.
TEST_SECRET = "test-signing-secret-0123456789abcdef"
ADMIN = Credentials(username="admin", password="password")


class FakeClock:
    """Manually advanced time source for TokenService and ConnectionPool."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStorage:
    """Storage stub that records every call and stores nothing."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def create(self, record: NewLogRecord) -> LogRecord:
        self.calls.append("create")
        raise AssertionError("create must not be called")

    async def list(self) -> list[LogRecord]:
        self.calls.append("list")
        return []

    async def update_message(self, record_id: int, message: str) -> bool:
        self.calls.append("update_message")
        return False

    async def delete(self, record_id: int) -> bool:
        self.calls.append("delete")
        return False

    async def ping(self) -> None:
        self.calls.append("ping")

    async def close(self) -> None:
        self.calls.append("close")


class FailingStorage:
    """Storage stub whose every operation fails with ``error``."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or StorageError("Error retrieving logs")

    async def create(self, record: NewLogRecord) -> LogRecord:
        raise self.error

    async def list(self) -> list[LogRecord]:
        raise self.error

    async def update_message(self, record_id: int, message: str) -> bool:
        raise self.error

    async def delete(self, record_id: int) -> bool:
        raise self.error

    async def ping(self) -> None:
        raise self.error

    async def close(self) -> None:
        return None
