"""In-memory storage adapter for log records."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime

from logmonitor.core.models import LogRecord, NewLogRecord


class InMemoryLogRecordStorage:
    """In-memory implementation of LogRecordStoragePort.

    Stores records in a dict keyed by id. Suitable for testing and
    local runs where persistence is not required.
    """

    def __init__(self) -> None:
        self._records: dict[int, LogRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create(self, record: NewLogRecord) -> LogRecord:
        """Insert a record and return it with its assigned id."""
        async with self._lock:
            stored = LogRecord(
                id=self._next_id,
                level=record.level,
                message=record.message,
                service=record.service,
                created_at=datetime.now(UTC),
            )
            self._records[stored.id] = stored
            self._next_id += 1
        return stored

    async def list(self) -> list[LogRecord]:
        """Return all records ordered by id ascending."""
        return [self._records[key] for key in sorted(self._records)]

    async def update_message(self, record_id: int, message: str) -> bool:
        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                return False
            self._records[record_id] = replace(current, message=message)
        return True

    async def delete(self, record_id: int) -> bool:
        async with self._lock:
            return self._records.pop(record_id, None) is not None

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None
