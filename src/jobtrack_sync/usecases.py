"""
usecases.py - Application-level operations.

Each use case is a small callable object wired with the
repositories, clock and id generator it needs. Creation use cases
validate input and return the stored record.
"""

from typing import AsyncIterator, Optional

from jobtrack_sync.clock import Clock, IdGenerator
from jobtrack_sync.errors import ValidationError
from jobtrack_sync.models import (
    Application,
    ApplicationStatus,
    Contact,
    Interview,
    InterviewMode,
    StatusHistory,
    Task,
)
from jobtrack_sync.repositories import (
    ApplicationRepository,
    ContactRepository,
    InterviewRepository,
    StatusHistoryRepository,
    TaskRepository,
)


def _require_text(field: str, value: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be blank", field=field, value=value)
    return value.strip()


async def _require_application(applications: ApplicationRepository, application_id: str) -> Application:
    """Return the live parent application or raise ValidationError."""
    application = await applications.get_by_id(application_id)
    if application is None or application.is_deleted:
        raise ValidationError(
            "Application does not exist",
            field="application_id",
            value=application_id,
        )
    return application


class AddApplication:
    def __init__(self, applications: ApplicationRepository, ids: IdGenerator, clock: Clock):
        self._applications = applications
        self._ids = ids
        self._clock = clock

    async def __call__(
        self,
        company: str,
        role: str,
        status: ApplicationStatus,
        applied_date_epoch_ms: int,
        location: Optional[str] = None,
        job_url: Optional[str] = None,
        source: Optional[str] = None,
        notes: str = "",
    ) -> Application:
        application = Application(
            id=self._ids.generate(),
            company=_require_text("company", company),
            role=_require_text("role", role),
            status=status,
            applied_date_epoch_ms=applied_date_epoch_ms,
            updated_at_epoch_ms=self._clock.now_ms(),
            location=location,
            job_url=job_url,
            source=source,
            notes=notes,
        )
        await self._applications.add(application)
        return application


class UpdateApplication:
    """Store an edited application; a status change is added to its timeline."""

    def __init__(self, applications: ApplicationRepository):
        self._applications = applications

    async def __call__(self, application: Application) -> Application:
        await _require_application(self._applications, application.id)
        _require_text("company", application.company)
        _require_text("role", application.role)
        return await self._applications.update(application)


class DeleteApplication:
    def __init__(self, applications: ApplicationRepository):
        self._applications = applications

    async def __call__(self, application_id: str) -> bool:
        return await self._applications.delete(application_id)


class ObserveApplications:
    def __init__(self, applications: ApplicationRepository):
        self._applications = applications

    def __call__(
        self,
        status: Optional[ApplicationStatus] = None,
        keyword: Optional[str] = None,
    ) -> AsyncIterator[list[Application]]:
        if keyword:
            return self._applications.search_by_keyword(keyword)
        if status is not None:
            return self._applications.observe_by_status(status)
        return self._applications.observe_all()


class AddTask:
    def __init__(
        self,
        tasks: TaskRepository,
        applications: ApplicationRepository,
        ids: IdGenerator,
        clock: Clock,
    ):
        self._tasks = tasks
        self._applications = applications
        self._ids = ids
        self._clock = clock

    async def __call__(
        self,
        application_id: str,
        title: str,
        due_date_epoch_ms: Optional[int] = None,
    ) -> Task:
        await _require_application(self._applications, application_id)
        task = Task(
            id=self._ids.generate(),
            application_id=application_id,
            title=_require_text("title", title),
            updated_at_epoch_ms=self._clock.now_ms(),
            due_date_epoch_ms=due_date_epoch_ms,
        )
        await self._tasks.add(task)
        return task


class ToggleTaskDone:
    """Set is_done explicitly, or flip it when no value is given."""

    def __init__(self, tasks: TaskRepository):
        self._tasks = tasks

    async def __call__(self, task_id: str, is_done: Optional[bool] = None) -> Optional[Task]:
        if is_done is None:
            return await self._tasks.toggle_done(task_id)
        if not await self._tasks.set_done(task_id, is_done):
            return None
        return await self._tasks.get_by_id(task_id)


class AddInterview:
    def __init__(
        self,
        interviews: InterviewRepository,
        applications: ApplicationRepository,
        ids: IdGenerator,
        clock: Clock,
    ):
        self._interviews = interviews
        self._applications = applications
        self._ids = ids
        self._clock = clock

    async def __call__(
        self,
        application_id: str,
        scheduled_date_epoch_ms: int,
        interview_mode: InterviewMode,
        interviewer_name: Optional[str] = None,
        interviewer_email: Optional[str] = None,
        location: Optional[str] = None,
        meeting_link: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Interview:
        await _require_application(self._applications, application_id)
        now = self._clock.now_ms()
        interview = Interview(
            interview_id=self._ids.generate(),
            application_id=application_id,
            scheduled_date_epoch_ms=scheduled_date_epoch_ms,
            interview_mode=interview_mode,
            created_at_epoch_ms=now,
            updated_at_epoch_ms=now,
            interviewer_name=interviewer_name,
            interviewer_email=interviewer_email,
            location=location,
            meeting_link=meeting_link,
            notes=notes,
        )
        await self._interviews.add(interview)
        return interview


class AddContact:
    def __init__(
        self,
        contacts: ContactRepository,
        applications: ApplicationRepository,
        ids: IdGenerator,
        clock: Clock,
    ):
        self._contacts = contacts
        self._applications = applications
        self._ids = ids
        self._clock = clock

    async def __call__(
        self,
        application_id: str,
        contact_name: str,
        contact_role: Optional[str] = None,
        email_text: Optional[str] = None,
        linked_in_url: Optional[str] = None,
        notes_text: Optional[str] = None,
    ) -> Contact:
        await _require_application(self._applications, application_id)
        now = self._clock.now_ms()
        contact = Contact(
            id=self._ids.generate(),
            application_id=application_id,
            contact_name=_require_text("contact_name", contact_name),
            created_at_epoch_ms=now,
            updated_at_epoch_ms=now,
            contact_role=contact_role,
            email_text=email_text,
            linked_in_url=linked_in_url,
            notes_text=notes_text,
        )
        await self._contacts.add(contact)
        return contact


class DeleteContact:
    def __init__(self, contacts: ContactRepository):
        self._contacts = contacts

    async def __call__(self, contact_id: str) -> bool:
        return await self._contacts.delete(contact_id)


class AddStatusHistory:
    """Append a manual entry to an application's status timeline."""

    def __init__(
        self,
        history: StatusHistoryRepository,
        applications: ApplicationRepository,
        ids: IdGenerator,
    ):
        self._history = history
        self._applications = applications
        self._ids = ids

    async def __call__(
        self,
        application_id: str,
        from_status: Optional[ApplicationStatus],
        to_status: ApplicationStatus,
        changed_at_epoch_ms: int,
        note: Optional[str] = None,
    ) -> StatusHistory:
        await _require_application(self._applications, application_id)
        entry = StatusHistory(
            id=self._ids.generate(),
            application_id=application_id,
            to_status=to_status,
            changed_at_epoch_ms=changed_at_epoch_ms,
            from_status=from_status,
            note=note,
        )
        await self._history.insert(entry)
        return entry
