"""
tasks.py - Local data access for application tasks.
"""

from jobtrack_sync.config import NEEDS_SYNC_COLUMN
from jobtrack_sync.local.base import MutableLocalDataSource
from jobtrack_sync.models import Task


class TaskLocalDataSource(MutableLocalDataSource[Task]):
    RECORD = Task
    ORDER_BY = "dueDateEpochMs IS NULL, dueDateEpochMs ASC, updatedAtEpochMs ASC"

    async def set_done(self, task_id: str, is_done: bool, updated_at_epoch_ms: int) -> None:
        await self._db.execute(
            self.table,
            f"UPDATE tasks SET isDone = ?, updatedAtEpochMs = ?, {NEEDS_SYNC_COLUMN} = 1 "
            "WHERE id = ?",
            (1 if is_done else 0, updated_at_epoch_ms, task_id),
        )
