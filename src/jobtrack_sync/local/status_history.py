"""
status_history.py - Local data access for the status timeline.

History is append-only: rows are inserted once and never
updated or deleted, apart from clearing the dirty flag.
"""

from typing import AsyncIterator

from jobtrack_sync.local.base import LocalDataSource
from jobtrack_sync.models import StatusHistory


class StatusHistoryLocalDataSource(LocalDataSource[StatusHistory]):
    RECORD = StatusHistory
    ORDER_BY = "changedAtEpochMs ASC"

    def observe_by_application_id(self, application_id: str) -> AsyncIterator[list[StatusHistory]]:
        return self._observe_list("applicationId = ?", (application_id,))

    async def get_by_application_id(self, application_id: str) -> list[StatusHistory]:
        rows = await self._db.fetch_all(self._select("applicationId = ?"), (application_id,))
        return self._to_records(rows)

    async def insert(self, entry: StatusHistory) -> bool:
        """
        Insert a history entry unless its id already exists.

        Returns:
            True if a row was written
        """
        row = entry.to_row()
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        written = await self._db.execute(
            self.table,
            f'INSERT OR IGNORE INTO "{self.table}" ({columns}) VALUES ({placeholders})',
            tuple(row.values()),
        )
        return written > 0
