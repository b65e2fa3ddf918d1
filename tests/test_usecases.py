"""
test_usecases.py - Validation and return values of the application use cases.
"""

import asyncio
from contextlib import aclosing
from dataclasses import replace

import pytest

from jobtrack_sync.errors import ValidationError
from jobtrack_sync.models import ApplicationStatus, InterviewMode


def add_acme(device):
    return device.add_application("Acme", "Engineer", ApplicationStatus.APPLIED, 100)


class TestAddApplication:
    def test_returns_stored_record(self, device, clock):
        async def run():
            application = await add_acme(device)
            return application, await device.applications.get_by_id(application.id)

        application, stored = asyncio.run(run())
        assert application.id == "a-1"
        assert application.updated_at_epoch_ms == clock.now_ms()
        assert application.needs_sync is True
        assert stored == application

    def test_strips_company_and_role(self, device):
        application = asyncio.run(
            device.add_application("  Acme ", " Engineer", ApplicationStatus.APPLIED, 100)
        )
        assert application.company == "Acme"
        assert application.role == "Engineer"

    @pytest.mark.parametrize("company,role", [("", "Engineer"), ("Acme", "   ")])
    def test_blank_fields_rejected(self, device, company, role):
        with pytest.raises(ValidationError):
            asyncio.run(device.add_application(company, role, ApplicationStatus.APPLIED, 100))

        assert asyncio.run(device.sources.applications.get_all()) == []


class TestChildUseCases:
    def test_add_task_requires_existing_application(self, device):
        with pytest.raises(ValidationError) as exc:
            asyncio.run(device.add_task("missing", "Follow up"))
        assert exc.value.field == "application_id"

    def test_add_task_rejects_deleted_application(self, device):
        async def run():
            application = await add_acme(device)
            await device.delete_application(application.id)
            await device.add_task(application.id, "Follow up")

        with pytest.raises(ValidationError):
            asyncio.run(run())

    def test_add_task_returns_task(self, device):
        async def run():
            application = await add_acme(device)
            return application, await device.add_task(application.id, "Follow up", due_date_epoch_ms=9_000)

        application, task = asyncio.run(run())
        assert task.application_id == application.id
        assert task.title == "Follow up"
        assert task.due_date_epoch_ms == 9_000
        assert task.is_done is False

    def test_add_interview_sets_both_timestamps(self, device, clock):
        async def run():
            application = await add_acme(device)
            return await device.add_interview(application.id, 5_000_000, InterviewMode.IN_PERSON)

        interview = asyncio.run(run())
        assert interview.created_at_epoch_ms == clock.now_ms()
        assert interview.updated_at_epoch_ms == clock.now_ms()
        assert interview.interview_mode is InterviewMode.IN_PERSON

    def test_add_contact_requires_name(self, device):
        async def run():
            application = await add_acme(device)
            await device.add_contact(application.id, " ")

        with pytest.raises(ValidationError) as exc:
            asyncio.run(run())
        assert exc.value.field == "contact_name"

    def test_toggle_task_done_explicit_value(self, device):
        async def run():
            application = await add_acme(device)
            task = await device.add_task(application.id, "Follow up")
            done = await device.toggle_task_done(task.id, True)
            still_done = await device.toggle_task_done(task.id, True)
            flipped = await device.toggle_task_done(task.id)
            missing = await device.toggle_task_done("nope", True)
            return done, still_done, flipped, missing

        done, still_done, flipped, missing = asyncio.run(run())
        assert done.is_done is True
        assert still_done.is_done is True
        assert flipped.is_done is False
        assert missing is None

    def test_add_status_history_requires_application(self, device):
        with pytest.raises(ValidationError):
            asyncio.run(
                device.add_status_history("missing", None, ApplicationStatus.OFFER, 10)
            )

    def test_add_status_history_appends(self, device):
        async def run():
            application = await add_acme(device)
            entry = await device.add_status_history(
                application.id,
                ApplicationStatus.APPLIED,
                ApplicationStatus.INTERVIEW,
                200,
                note="Recruiter call",
            )
            return entry, await device.history.get_by_application_id(application.id)

        entry, entries = asyncio.run(run())
        assert entries[-1] == entry
        assert entry.note == "Recruiter call"


class TestUpdateAndObserve:
    def test_update_rejects_unknown_application(self, device):
        async def run():
            application = await add_acme(device)
            await device.update_application(replace(application, id="other"))

        with pytest.raises(ValidationError):
            asyncio.run(run())

    def test_update_records_status_transition(self, device, clock):
        async def run():
            application = await add_acme(device)
            clock.advance(1_000)
            updated = await device.update_application(
                replace(application, status=ApplicationStatus.OFFER)
            )
            return updated, await device.history.get_by_application_id(application.id)

        updated, entries = asyncio.run(run())
        assert updated.status is ApplicationStatus.OFFER
        assert [e.to_status for e in entries] == [ApplicationStatus.APPLIED, ApplicationStatus.OFFER]

    def test_observe_applications_filters(self, device):
        async def run():
            await add_acme(device)
            await device.add_application("Globex", "Designer", ApplicationStatus.OFFER, 100)
            results = {}
            for label, kwargs in (
                ("all", {}),
                ("offer", {"status": ApplicationStatus.OFFER}),
                ("keyword", {"keyword": "glob"}),
            ):
                async with aclosing(device.observe_applications(**kwargs)) as stream:
                    results[label] = sorted(a.company for a in await stream.__anext__())
            return results

        results = asyncio.run(run())
        assert results == {
            "all": ["Acme", "Globex"],
            "offer": ["Globex"],
            "keyword": ["Globex"],
        }

    def test_deleted_applications_are_hidden(self, device):
        async def run():
            application = await add_acme(device)
            await device.delete_application(application.id)
            async with aclosing(device.observe_applications()) as stream:
                return await stream.__anext__()

        assert asyncio.run(run()) == []
