"""Storage adapters implementing core ports."""

from logmonitor.adapters.storage.in_memory import InMemoryLogRecordStorage
from logmonitor.adapters.storage.pool import ConnectionPool
from logmonitor.adapters.storage.sqlite_logs import SQLiteLogRecordStorage

__all__ = [
    "ConnectionPool",
    "InMemoryLogRecordStorage",
    "SQLiteLogRecordStorage",
]
