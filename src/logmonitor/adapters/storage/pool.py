"""Bounded aiosqlite connection pool.

The pool caps how many connections are open at once and recycles any
connection older than ``max_lifetime`` when it is checked out or returned.

For :memory: databases a single persistent connection is kept since
in-memory databases are connection-scoped in SQLite; the pool size is
forced to one and connections are never recycled.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

import aiosqlite

from logmonitor.core.errors import StorageError

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


@dataclass
class _PooledConnection:
    conn: aiosqlite.Connection
    created_at: float


class ConnectionPool:
    """Hands out aiosqlite connections, at most ``max_open`` at a time.

    Args:
        db_path: SQLite database file path, or ":memory:".
        max_open: Maximum number of simultaneously open connections.
        max_lifetime: Seconds after which a connection is closed and
            replaced. Zero disables recycling.
        schema: SQL script executed once before the first checkout.
        busy_timeout_ms: How long SQLite waits on a locked database.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        db_path: str,
        max_open: int = 25,
        max_lifetime: float = 300.0,
        schema: str | None = None,
        busy_timeout_ms: int = 5000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_open < 1:
            raise ValueError("max_open must be at least 1")
        self._db_path = db_path
        self._is_memory = db_path == MEMORY_DATABASE
        self._max_open = 1 if self._is_memory else max_open
        self._max_lifetime = 0.0 if self._is_memory else max_lifetime
        self._schema = schema
        self._busy_timeout_ms = busy_timeout_ms
        self._clock = clock
        self._idle: list[_PooledConnection] = []
        self._in_use = 0
        self._semaphore: asyncio.Semaphore | None = None
        self._init_lock: asyncio.Lock | None = None
        self._initialized = False
        self._closed = False

    @property
    def max_open(self) -> int:
        return self._max_open

    @property
    def in_use(self) -> int:
        """Number of connections currently checked out."""
        return self._in_use

    @property
    def idle(self) -> int:
        """Number of open connections waiting in the pool."""
        return len(self._idle)

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Get or create the checkout semaphore (lazy to avoid event loop issues)."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_open)
        return self._semaphore

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    def _expired(self, pooled: _PooledConnection) -> bool:
        if self._max_lifetime <= 0:
            return False
        return self._clock() - pooled.created_at >= self._max_lifetime

    async def _connect(self) -> _PooledConnection:
        try:
            conn = await aiosqlite.connect(self._db_path)
            await conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(f"Unable to open database {self._db_path!r}") from exc
        return _PooledConnection(conn=conn, created_at=self._clock())

    async def _ensure_initialized(self) -> None:
        """Apply the schema once."""
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            pooled = await self._connect()
            try:
                if not self._is_memory:
                    await pooled.conn.execute("PRAGMA journal_mode=WAL")
                if self._schema:
                    await pooled.conn.executescript(self._schema)
                await pooled.conn.commit()
            except aiosqlite.Error as exc:
                await pooled.conn.close()
                raise StorageError("Unable to initialize database schema") from exc
            self._idle.append(pooled)
            self._initialized = True

    async def _checkout(self) -> _PooledConnection:
        while self._idle:
            pooled = self._idle.pop()
            if not self._expired(pooled):
                return pooled
            logger.debug("Recycling expired database connection")
            await pooled.conn.close()
        return await self._connect()

    async def _release(self, pooled: _PooledConnection) -> None:
        if self._closed or self._expired(pooled):
            await pooled.conn.close()
            return
        self._idle.append(pooled)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Check out a connection for the duration of the context.

        Any open transaction is rolled back if the block raises.

        Raises:
            StorageError: If the pool is closed or the database cannot be opened.
        """
        if self._closed:
            raise StorageError("Connection pool is closed")
        await self._ensure_initialized()
        async with self._get_semaphore():
            pooled = await self._checkout()
            self._in_use += 1
            try:
                yield pooled.conn
            except BaseException:
                if pooled.conn.in_transaction:
                    await pooled.conn.rollback()
                raise
            finally:
                self._in_use -= 1
                await self._release(pooled)

    async def close(self) -> None:
        """Close idle connections; checked-out ones close when returned."""
        self._closed = True
        idle, self._idle = self._idle, []
        for pooled in idle:
            await pooled.conn.close()
