"""
repositories.py - Domain repositories over local data access.

Repositories stamp modification times and mark rows dirty; the
application repository also records status transitions. Local
store errors propagate to the caller unchanged.
"""

import dataclasses
import logging
from typing import AsyncIterator, Generic, Optional, TypeVar

from jobtrack_sync.clock import Clock, IdGenerator
from jobtrack_sync.config import INITIAL_HISTORY_NOTE
from jobtrack_sync.local import (
    ApplicationLocalDataSource,
    ContactLocalDataSource,
    InterviewLocalDataSource,
    MutableLocalDataSource,
    StatusHistoryLocalDataSource,
    TaskLocalDataSource,
)
from jobtrack_sync.models import (
    Application,
    ApplicationStatus,
    Contact,
    Interview,
    StatusHistory,
    SyncRecord,
    Task,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=SyncRecord)


class _EditableRepository(Generic[R]):
    """Shared add/update/delete for kinds that are edited in place."""

    def __init__(self, source: MutableLocalDataSource[R], clock: Clock):
        self._source = source
        self._clock = clock

    async def get_by_id(self, record_id: str) -> Optional[R]:
        return await self._source.get_by_id(record_id)

    def observe_by_id(self, record_id: str) -> AsyncIterator[Optional[R]]:
        return self._source.observe_by_id(record_id)

    async def add(self, record: R) -> None:
        await self._source.upsert(dataclasses.replace(record, needs_sync=True))

    async def update(self, record: R) -> R:
        """Write record with a fresh timestamp. Returns the stored version."""
        updated = dataclasses.replace(
            record,
            **{record.TIMESTAMP_FIELD: self._clock.now_ms(), "needs_sync": True},
        )
        await self._source.upsert(updated)
        return updated

    async def delete(self, record_id: str) -> bool:
        """Soft delete. Returns False when the id is unknown."""
        if await self._source.get_by_id(record_id) is None:
            return False
        await self._source.soft_delete(record_id, self._clock.now_ms())
        return True


class ApplicationRepository(_EditableRepository[Application]):
    """Applications plus their status timeline."""

    def __init__(
        self,
        source: ApplicationLocalDataSource,
        history: StatusHistoryLocalDataSource,
        clock: Clock,
        ids: IdGenerator,
    ):
        super().__init__(source, clock)
        self._applications = source
        self._history = history
        self._ids = ids

    def observe_all(self) -> AsyncIterator[list[Application]]:
        return self._applications.observe_all()

    def observe_by_status(self, status: ApplicationStatus) -> AsyncIterator[list[Application]]:
        return self._applications.observe_by_status(status)

    def search_by_keyword(self, keyword: str) -> AsyncIterator[list[Application]]:
        return self._applications.search_by_keyword(keyword)

    async def add(self, application: Application) -> None:
        await self._applications.upsert(dataclasses.replace(application, needs_sync=True))
        await self._history.insert(
            StatusHistory(
                id=self._ids.generate(),
                application_id=application.id,
                from_status=None,
                to_status=application.status,
                changed_at_epoch_ms=application.applied_date_epoch_ms,
                note=INITIAL_HISTORY_NOTE,
            )
        )

    async def update(self, application: Application) -> Application:
        previous = await self._applications.get_by_id(application.id)
        updated = await super().update(application)
        if previous is not None and previous.status != updated.status:
            logger.debug(
                f"Application {updated.id} moved {previous.status.name} -> {updated.status.name}"
            )
            await self._history.insert(
                StatusHistory(
                    id=self._ids.generate(),
                    application_id=updated.id,
                    from_status=previous.status,
                    to_status=updated.status,
                    changed_at_epoch_ms=updated.updated_at_epoch_ms,
                    note=None,
                )
            )
        return updated


class TaskRepository(_EditableRepository[Task]):
    def __init__(self, source: TaskLocalDataSource, clock: Clock):
        super().__init__(source, clock)
        self._tasks = source

    def observe_by_application_id(self, application_id: str) -> AsyncIterator[list[Task]]:
        return self._tasks.observe_by_application_id(application_id)

    async def set_done(self, task_id: str, is_done: bool) -> bool:
        if await self._tasks.get_by_id(task_id) is None:
            return False
        await self._tasks.set_done(task_id, is_done, self._clock.now_ms())
        return True

    async def toggle_done(self, task_id: str) -> Optional[Task]:
        """Flip is_done. Returns the updated task, or None if unknown."""
        task = await self._tasks.get_by_id(task_id)
        if task is None:
            return None
        await self._tasks.set_done(task_id, not task.is_done, self._clock.now_ms())
        return await self._tasks.get_by_id(task_id)


class InterviewRepository(_EditableRepository[Interview]):
    def __init__(self, source: InterviewLocalDataSource, clock: Clock):
        super().__init__(source, clock)
        self._interviews = source

    def observe_by_application_id(self, application_id: str) -> AsyncIterator[list[Interview]]:
        return self._interviews.observe_by_application_id(application_id)

    def observe_upcoming(self) -> AsyncIterator[list[Interview]]:
        """Interviews scheduled from now on; the cutoff is fixed when called."""
        return self._interviews.observe_upcoming(self._clock.now_ms())


class ContactRepository(_EditableRepository[Contact]):
    def __init__(self, source: ContactLocalDataSource, clock: Clock):
        super().__init__(source, clock)
        self._contacts = source

    def observe_by_application_id(self, application_id: str) -> AsyncIterator[list[Contact]]:
        return self._contacts.observe_by_application_id(application_id)


class StatusHistoryRepository:
    """Append-only access to the status timeline."""

    def __init__(self, source: StatusHistoryLocalDataSource):
        self._source = source

    async def insert(self, entry: StatusHistory) -> bool:
        return await self._source.insert(dataclasses.replace(entry, needs_sync=True))

    async def get_by_application_id(self, application_id: str) -> list[StatusHistory]:
        return await self._source.get_by_application_id(application_id)

    def observe_by_application_id(self, application_id: str) -> AsyncIterator[list[StatusHistory]]:
        return self._source.observe_by_application_id(application_id)
