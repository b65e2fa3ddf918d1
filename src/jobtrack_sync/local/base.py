"""
base.py - Shared local data access for synchronized records.

A data source wraps one table. Reads are point queries or live
streams; writes always replace a full row and never hard-delete.
"""

import sqlite3
from typing import Any, AsyncIterator, ClassVar, Generic, Sequence, TypeVar

from jobtrack_sync.config import NEEDS_SYNC_COLUMN
from jobtrack_sync.db.connection import LocalDatabase, fetch_row, fetch_rows
from jobtrack_sync.models import SyncRecord

R = TypeVar("R", bound=SyncRecord)


class LocalDataSource(Generic[R]):
    """
    Read side and sync bookkeeping common to every record kind.

    Subclasses set RECORD and, optionally, ORDER_BY for list queries.
    """

    RECORD: ClassVar[type[SyncRecord]]
    ORDER_BY: ClassVar[str] = ""

    def __init__(self, database: LocalDatabase):
        self._db = database

    @property
    def table(self) -> str:
        return self.RECORD.KIND

    @property
    def kind(self) -> str:
        return self.RECORD.KIND

    def _select(self, where: str = "", order: bool = True) -> str:
        sql = f'SELECT * FROM "{self.table}"'
        if where:
            sql += f" WHERE {where}"
        if order and self.ORDER_BY:
            sql += f" ORDER BY {self.ORDER_BY}"
        return sql

    def _to_records(self, rows: Sequence[sqlite3.Row]) -> list[R]:
        return [self.RECORD.from_row(row) for row in rows]

    async def get_by_id(self, record_id: str) -> R | None:
        row = await self._db.fetch_one(
            self._select(f"{self.RECORD.id_column()} = ?", order=False),
            (record_id,),
        )
        return self.RECORD.from_row(row) if row is not None else None

    async def get_all(self) -> list[R]:
        """Every row, tombstones included."""
        return self._to_records(await self._db.fetch_all(self._select()))

    async def get_pending_sync(self) -> list[R]:
        rows = await self._db.fetch_all(self._select(f"{NEEDS_SYNC_COLUMN} = 1"))
        return self._to_records(rows)

    async def count_pending_sync(self) -> int:
        row = await self._db.fetch_one(
            f'SELECT COUNT(*) FROM "{self.table}" WHERE {NEEDS_SYNC_COLUMN} = 1'
        )
        return row[0]

    async def mark_synced(self, record_id: str) -> None:
        """Clear the dirty flag without touching any other column."""
        await self._db.execute(
            self.table,
            f'UPDATE "{self.table}" SET {NEEDS_SYNC_COLUMN} = 0 '
            f"WHERE {self.RECORD.id_column()} = ?",
            (record_id,),
        )

    def observe_by_id(self, record_id: str) -> AsyncIterator[R | None]:
        sql = self._select(f"{self.RECORD.id_column()} = ?", order=False)

        def query(conn: sqlite3.Connection) -> R | None:
            row = fetch_row(conn, sql, (record_id,))
            return self.RECORD.from_row(row) if row is not None else None

        return self._db.observe([self.table], query)

    def _observe_list(self, where: str = "", params: Sequence[Any] = ()) -> AsyncIterator[list[R]]:
        sql = self._select(where)
        args = tuple(params)

        def query(conn: sqlite3.Connection) -> list[R]:
            return self._to_records(fetch_rows(conn, sql, args))

        return self._db.observe([self.table], query)


class MutableLocalDataSource(LocalDataSource[R]):
    """Data source for kinds that are edited and soft-deleted."""

    LIVE: ClassVar[str] = "isDeleted = 0"

    def observe_all(self) -> AsyncIterator[list[R]]:
        """Live list of non-deleted rows."""
        return self._observe_list(self.LIVE)

    def observe_by_application_id(self, application_id: str) -> AsyncIterator[list[R]]:
        return self._observe_list(f"applicationId = ? AND {self.LIVE}", (application_id,))

    async def upsert(self, record: R) -> None:
        """Insert or replace the full row keyed by its id."""
        row = record.to_row()
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        await self._db.execute(
            self.table,
            f'INSERT OR REPLACE INTO "{self.table}" ({columns}) VALUES ({placeholders})',
            tuple(row.values()),
        )

    async def soft_delete(self, record_id: str, updated_at_epoch_ms: int) -> None:
        """Tombstone the row so the deletion itself propagates."""
        await self._db.execute(
            self.table,
            f'UPDATE "{self.table}" SET isDeleted = 1, updatedAtEpochMs = ?, '
            f"{NEEDS_SYNC_COLUMN} = 1 WHERE {self.RECORD.id_column()} = ?",
            (updated_at_epoch_ms, record_id),
        )
