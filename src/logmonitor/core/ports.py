"""Port interfaces for storage and authentication adapters.

These protocols define the contracts that adapters must implement.
The handlers and the pipeline depend only on these interfaces, not on
concrete implementations.
"""

from typing import Protocol, runtime_checkable

from logmonitor.core.models import LogRecord, NewLogRecord


@runtime_checkable
class LogRecordStoragePort(Protocol):
    """Port for log record storage operations.

    Adapters implementing this protocol own the log records exclusively.
    Examples: SQLiteLogRecordStorage, InMemoryLogRecordStorage.

    Every method raises StorageError when the backend fails.
    """

    async def create(self, record: NewLogRecord) -> LogRecord:
        """Insert a record and return it with its assigned id and timestamp."""
        ...

    async def list(self) -> list[LogRecord]:
        """Return all stored records, ordered by id ascending."""
        ...

    async def update_message(self, record_id: int, message: str) -> bool:
        """Replace the message of a record.

        Returns:
            True if a record was updated, False if no record has that id.
        """
        ...

    async def delete(self, record_id: int) -> bool:
        """Delete a record.

        Returns:
            True if a record was deleted, False if no record has that id.
        """
        ...

    async def ping(self) -> None:
        """Check that the backend is reachable."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...


@runtime_checkable
class CredentialVerifier(Protocol):
    """Port for the authentication source consulted at login.

    Examples: StaticCredentialVerifier (single configured principal),
    DelegatingCredentialVerifier (external identity provider).
    """

    async def verify(self, username: str, password: str) -> bool:
        """Return True if the credentials identify a known principal."""
        ...
