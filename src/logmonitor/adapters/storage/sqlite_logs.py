"""SQLite storage adapter for log records."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import aiosqlite

from logmonitor.adapters.storage.pool import ConnectionPool
from logmonitor.core.errors import StorageError
from logmonitor.core.models import LogRecord, NewLogRecord

logger = logging.getLogger(__name__)

LOGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    level TEXT,
    message TEXT NOT NULL,
    service TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_logs_created_at ON logs(created_at);
"""

_INSERT_LOG = """
INSERT INTO logs (level, message, service, created_at) VALUES (?, ?, ?, ?)
"""

_SELECT_LOGS = """
SELECT id, level, message, service, created_at
FROM logs
ORDER BY id ASC
"""

_UPDATE_LOG_MESSAGE = """
UPDATE logs SET message = ? WHERE id = ?
"""

_DELETE_LOG = """
DELETE FROM logs WHERE id = ?
"""

_PING = "SELECT 1"

# sqlite3 raises ValueError for unencodable text and OverflowError for
# integers outside 64 bits, neither of which is an aiosqlite.Error.
_BACKEND_ERRORS = (aiosqlite.Error, ValueError, OverflowError)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_created_at(raw: str | None) -> datetime:
    if not raw:
        return datetime.fromtimestamp(0, UTC)
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class SQLiteLogRecordStorage:
    """SQLite implementation of LogRecordStoragePort.

    Every statement is parameterized and runs on a connection checked out
    from a bounded ConnectionPool. Backend failures are logged with full
    detail and re-raised as StorageError.
    """

    def __init__(
        self, pool: ConnectionPool, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self._pool = pool
        self._clock = clock

    @classmethod
    def open(
        cls, db_path: str, max_open: int = 25, max_lifetime: float = 300.0
    ) -> "SQLiteLogRecordStorage":
        """Create storage backed by a new pool that applies LOGS_SCHEMA."""
        pool = ConnectionPool(
            db_path, max_open=max_open, max_lifetime=max_lifetime, schema=LOGS_SCHEMA
        )
        return cls(pool)

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    async def create(self, record: NewLogRecord) -> LogRecord:
        """Insert a record and return it with its assigned id."""
        created_at = self._clock()
        try:
            async with self._pool.connection() as db:
                cursor = await db.execute(
                    _INSERT_LOG,
                    (record.level, record.message, record.service, created_at.isoformat()),
                )
                record_id = cursor.lastrowid
                await db.commit()
        except _BACKEND_ERRORS as exc:
            logger.exception("Error inserting log")
            raise StorageError("Failed to insert log") from exc
        if record_id is None:
            raise StorageError("Failed to insert log")
        return LogRecord(
            id=record_id,
            level=record.level,
            message=record.message,
            service=record.service,
            created_at=created_at,
        )

    async def list(self) -> list[LogRecord]:
        """Return all records ordered by id ascending."""
        try:
            async with self._pool.connection() as db:
                async with db.execute(_SELECT_LOGS) as cursor:
                    rows = await cursor.fetchall()
        except _BACKEND_ERRORS as exc:
            logger.exception("Error retrieving logs")
            raise StorageError("Error retrieving logs") from exc
        try:
            return [
                LogRecord(
                    id=row[0],
                    level=row[1] or "",
                    message=row[2] or "",
                    service=row[3] or "",
                    created_at=_parse_created_at(row[4]),
                )
                for row in rows
            ]
        except ValueError as exc:
            logger.exception("Error scanning logs")
            raise StorageError("Error scanning logs") from exc

    async def update_message(self, record_id: int, message: str) -> bool:
        """Replace a record's message. Returns False if the id is unknown."""
        try:
            async with self._pool.connection() as db:
                cursor = await db.execute(_UPDATE_LOG_MESSAGE, (message, record_id))
                updated = cursor.rowcount
                await db.commit()
        except _BACKEND_ERRORS as exc:
            logger.exception("Error updating log %s", record_id)
            raise StorageError("Failed to update log") from exc
        return updated > 0

    async def delete(self, record_id: int) -> bool:
        """Delete a record. Returns False if the id is unknown."""
        try:
            async with self._pool.connection() as db:
                cursor = await db.execute(_DELETE_LOG, (record_id,))
                deleted = cursor.rowcount
                await db.commit()
        except _BACKEND_ERRORS as exc:
            logger.exception("Error deleting log %s", record_id)
            raise StorageError("Failed to delete log") from exc
        return deleted > 0

    async def ping(self) -> None:
        """Round-trip a trivial query; raises StorageError when unreachable."""
        try:
            async with self._pool.connection() as db:
                async with db.execute(_PING) as cursor:
                    await cursor.fetchone()
        except _BACKEND_ERRORS as exc:
            raise StorageError("Unable to ping database") from exc

    async def close(self) -> None:
        await self._pool.close()
