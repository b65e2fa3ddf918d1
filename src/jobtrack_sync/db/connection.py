"""
connection.py - SQLite database connection management.

Handles connection creation, PRAGMA configuration, and the
LocalDatabase wrapper that runs statements off the event loop
and announces table changes to live queries.
"""

import asyncio
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, Callable, Iterable, Sequence, TypeVar

from jobtrack_sync.config import SQLITE_PRAGMAS
from jobtrack_sync.db.migrations import initialize_schema
from jobtrack_sync.errors import DatabaseError
from jobtrack_sync.observable import ChangeNotifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_connection(db_path: str) -> sqlite3.Connection:
    """
    Create a new SQLite connection with proper configuration.

    Args:
        db_path: Path to SQLite database file (or ":memory:")

    Returns:
        Configured sqlite3.Connection with sqlite3.Row rows

    Raises:
        DatabaseError: If connection fails
    """
    try:
        conn = sqlite3.connect(
            db_path,
            isolation_level=None,  # Manual transaction control
            check_same_thread=False,
        )
    except sqlite3.Error as e:
        raise DatabaseError(
            f"Failed to connect to database: {e}",
            operation="connect",
        ) from e

    conn.row_factory = sqlite3.Row
    _apply_pragmas(conn)
    return conn


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    for pragma, value in SQLITE_PRAGMAS.items():
        try:
            conn.execute(f"PRAGMA {pragma} = {value}")
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to set PRAGMA {pragma}: {e}",
                operation="pragma",
                sql=f"PRAGMA {pragma} = {value}",
            ) from e


def verify_integrity(conn: sqlite3.Connection) -> bool:
    """Run SQLite integrity check."""
    try:
        result = conn.execute("PRAGMA integrity_check").fetchone()
        return result is not None and result[0] == "ok"
    except sqlite3.Error:
        return False


class LocalDatabase:
    """
    Asynchronous facade over one SQLite connection.

    Every statement runs on a single worker thread, so reads and
    writes are serialized and never block the event loop. Writes
    name the table they touch; live queries on that table re-run.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="jobtrack-db")
        self._notifier = ChangeNotifier()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = create_connection(self._db_path)
        return self._conn

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    def open(self) -> list[str]:
        """Create and migrate tables. Returns tables that were migrated."""
        return initialize_schema(self.connection)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        if self._conn:
            self._conn.close()
            self._conn = None

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run func(connection, *args) on the database thread."""
        conn = self.connection
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, conn, *args)

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        return await self.run(fetch_rows, sql, tuple(params))

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        return await self.run(fetch_row, sql, tuple(params))

    async def execute(self, table: str, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one write statement against table and notify observers."""
        rowcount = await self.run(execute_write, sql, tuple(params))
        self._notifier.notify(table)
        return rowcount

    async def observe(
        self,
        tables: Iterable[str],
        query: Callable[[sqlite3.Connection], T],
    ) -> AsyncIterator[T]:
        """
        Emit query results now and after every write to tables.

        The stream ends only when the consumer stops iterating.
        """
        signal = self._notifier.subscribe(tables)
        try:
            while True:
                signal.clear()
                yield await self.run(query)
                await signal.wait()
        finally:
            self._notifier.unsubscribe(signal)


def fetch_rows(conn: sqlite3.Connection, sql: str, params: tuple) -> list[sqlite3.Row]:
    try:
        return conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        raise DatabaseError(f"Query failed: {e}", operation="select", sql=sql) from e


def fetch_row(conn: sqlite3.Connection, sql: str, params: tuple) -> sqlite3.Row | None:
    try:
        return conn.execute(sql, params).fetchone()
    except sqlite3.Error as e:
        raise DatabaseError(f"Query failed: {e}", operation="select", sql=sql) from e


def execute_write(conn: sqlite3.Connection, sql: str, params: tuple) -> int:
    try:
        return conn.execute(sql, params).rowcount
    except sqlite3.Error as e:
        raise DatabaseError(f"Write failed: {e}", operation="write", sql=sql) from e
