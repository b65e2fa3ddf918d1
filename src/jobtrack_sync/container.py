"""
container.py - Explicit wiring of the whole local-first stack.

Builds every component once, in dependency order, and hands
them out as attributes.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from jobtrack_sync.auth.base import AuthProvider
from jobtrack_sync.clock import Clock, IdGenerator, SystemClock, UuidGenerator
from jobtrack_sync.db.connection import LocalDatabase
from jobtrack_sync.local import LocalSources
from jobtrack_sync.remote.base import RemoteStore
from jobtrack_sync.repositories import (
    ApplicationRepository,
    ContactRepository,
    InterviewRepository,
    StatusHistoryRepository,
    TaskRepository,
)
from jobtrack_sync.sync.coordinator import SyncCoordinator
from jobtrack_sync.usecases import (
    AddApplication,
    AddContact,
    AddInterview,
    AddStatusHistory,
    AddTask,
    DeleteApplication,
    DeleteContact,
    ObserveApplications,
    ToggleTaskDone,
    UpdateApplication,
)

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    database: LocalDatabase
    sources: LocalSources
    remote: RemoteStore
    auth: AuthProvider
    clock: Clock
    ids: IdGenerator

    applications: ApplicationRepository
    tasks: TaskRepository
    interviews: InterviewRepository
    contacts: ContactRepository
    history: StatusHistoryRepository

    add_application: AddApplication
    update_application: UpdateApplication
    delete_application: DeleteApplication
    observe_applications: ObserveApplications
    add_task: AddTask
    toggle_task_done: ToggleTaskDone
    add_interview: AddInterview
    add_contact: AddContact
    delete_contact: DeleteContact
    add_status_history: AddStatusHistory

    coordinator: SyncCoordinator

    @classmethod
    def create(
        cls,
        db_path: str,
        remote: RemoteStore,
        auth: AuthProvider,
        clock: Optional[Clock] = None,
        ids: Optional[IdGenerator] = None,
        last_synced_at_epoch_ms: Optional[int] = None,
    ) -> "AppContainer":
        """
        Open (and migrate) the database and wire every component.

        The remote store and auth provider stay owned by the caller.
        """
        clock = clock or SystemClock()
        ids = ids or UuidGenerator()

        database = LocalDatabase(db_path)
        migrated = database.open()
        if migrated:
            logger.info(f"Migrated tables: {', '.join(migrated)}")
        sources = LocalSources.create(database)

        applications = ApplicationRepository(sources.applications, sources.status_history, clock, ids)
        tasks = TaskRepository(sources.tasks, clock)
        interviews = InterviewRepository(sources.interviews, clock)
        contacts = ContactRepository(sources.contacts, clock)
        history = StatusHistoryRepository(sources.status_history)

        return cls(
            database=database,
            sources=sources,
            remote=remote,
            auth=auth,
            clock=clock,
            ids=ids,
            applications=applications,
            tasks=tasks,
            interviews=interviews,
            contacts=contacts,
            history=history,
            add_application=AddApplication(applications, ids, clock),
            update_application=UpdateApplication(applications),
            delete_application=DeleteApplication(applications),
            observe_applications=ObserveApplications(applications),
            add_task=AddTask(tasks, applications, ids, clock),
            toggle_task_done=ToggleTaskDone(tasks),
            add_interview=AddInterview(interviews, applications, ids, clock),
            add_contact=AddContact(contacts, applications, ids, clock),
            delete_contact=DeleteContact(contacts),
            add_status_history=AddStatusHistory(history, applications, ids),
            coordinator=SyncCoordinator(
                sources, remote, auth, clock, last_synced_at_epoch_ms=last_synced_at_epoch_ms
            ),
        )

    async def close(self) -> None:
        """Stop the coordinator and close the database."""
        await self.coordinator.stop()
        self.database.close()
