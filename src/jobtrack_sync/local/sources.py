"""
sources.py - The five local data sources as one bundle.
"""

from dataclasses import dataclass

from jobtrack_sync.db.connection import LocalDatabase
from jobtrack_sync.local.applications import ApplicationLocalDataSource
from jobtrack_sync.local.base import LocalDataSource
from jobtrack_sync.local.contacts import ContactLocalDataSource
from jobtrack_sync.local.interviews import InterviewLocalDataSource
from jobtrack_sync.local.status_history import StatusHistoryLocalDataSource
from jobtrack_sync.local.tasks import TaskLocalDataSource


@dataclass(frozen=True)
class LocalSources:
    applications: ApplicationLocalDataSource
    tasks: TaskLocalDataSource
    interviews: InterviewLocalDataSource
    contacts: ContactLocalDataSource
    status_history: StatusHistoryLocalDataSource

    @classmethod
    def create(cls, database: LocalDatabase) -> "LocalSources":
        return cls(
            applications=ApplicationLocalDataSource(database),
            tasks=TaskLocalDataSource(database),
            interviews=InterviewLocalDataSource(database),
            contacts=ContactLocalDataSource(database),
            status_history=StatusHistoryLocalDataSource(database),
        )

    def in_sync_order(self) -> list[LocalDataSource]:
        """Application, Task, Interview, Contact, StatusHistory."""
        return [
            self.applications,
            self.tasks,
            self.interviews,
            self.contacts,
            self.status_history,
        ]

    async def pending_counts(self) -> dict[str, int]:
        return {source.kind: await source.count_pending_sync() for source in self.in_sync_order()}
