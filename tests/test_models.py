"""
test_models.py - Record codecs for the local rows and remote documents.
"""

import pytest

from jobtrack_sync.errors import DecodeError
from jobtrack_sync.models import (
    Application,
    ApplicationStatus,
    Interview,
    InterviewMode,
    StatusHistory,
    Task,
    camel_case,
)


def make_application(**overrides) -> Application:
    values = dict(
        id="app-1",
        company="Acme",
        role="Engineer",
        status=ApplicationStatus.APPLIED,
        applied_date_epoch_ms=100,
        updated_at_epoch_ms=200,
    )
    values.update(overrides)
    return Application(**values)


def test_camel_case():
    assert camel_case("applied_date_epoch_ms") == "appliedDateEpochMs"
    assert camel_case("linked_in_url") == "linkedInUrl"
    assert camel_case("id") == "id"


class TestDocuments:
    def test_document_uses_camel_case_and_enum_names(self):
        doc = make_application(location="Remote").to_document()

        assert doc["id"] == "app-1"
        assert doc["appliedDateEpochMs"] == 100
        assert doc["updatedAtEpochMs"] == 200
        assert doc["status"] == "APPLIED"
        assert doc["location"] == "Remote"
        assert doc["isDeleted"] is False

    def test_document_never_carries_dirty_flag(self):
        doc = make_application(needs_sync=True).to_document()
        assert "needsSync" not in doc

    def test_decoded_document_is_clean(self):
        doc = make_application().to_document()
        decoded = Application.from_document(doc)

        assert decoded.needs_sync is False
        assert decoded.status is ApplicationStatus.APPLIED

    def test_missing_optional_fields_take_defaults(self):
        doc = make_application().to_document()
        del doc["notes"]
        del doc["isDeleted"]
        del doc["location"]

        decoded = Application.from_document(doc)

        assert decoded.notes == ""
        assert decoded.is_deleted is False
        assert decoded.location is None

    def test_missing_required_field_raises(self):
        doc = make_application().to_document()
        del doc["company"]

        with pytest.raises(DecodeError) as exc:
            Application.from_document(doc)
        assert exc.value.doc_id == "app-1"
        assert exc.value.kind == "applications"

    def test_unknown_enum_name_raises(self):
        doc = make_application().to_document()
        doc["status"] = "GHOSTED"

        with pytest.raises(DecodeError):
            Application.from_document(doc)

    @pytest.mark.parametrize(
        "column, value",
        [
            ("updatedAtEpochMs", "later"),
            ("appliedDateEpochMs", 1.5),
            ("updatedAtEpochMs", True),
            ("isDeleted", 1),
            ("company", 42),
            ("status", ["APPLIED"]),
        ],
    )
    def test_wrongly_typed_field_raises(self, column, value):
        doc = make_application().to_document()
        doc[column] = value

        with pytest.raises(DecodeError) as exc:
            Application.from_document(doc)
        assert column in exc.value.message

    def test_interview_keyed_by_interview_id(self):
        interview = Interview(
            interview_id="int-1",
            application_id="app-1",
            scheduled_date_epoch_ms=5_000,
            interview_mode=InterviewMode.VIDEO,
            created_at_epoch_ms=1,
            updated_at_epoch_ms=2,
        )
        doc = interview.to_document()

        assert Interview.id_column() == "interviewId"
        assert doc["interviewId"] == "int-1"
        assert doc["interviewMode"] == "VIDEO"
        assert interview.record_id == "int-1"

    def test_history_timestamp_is_changed_at(self):
        entry = StatusHistory(
            id="h-1",
            application_id="app-1",
            to_status=ApplicationStatus.OFFER,
            changed_at_epoch_ms=42,
        )

        assert entry.timestamp == 42
        assert StatusHistory.timestamp_column() == "changedAtEpochMs"
        assert entry.to_document()["fromStatus"] is None
        assert "isDeleted" not in entry.to_document()


class TestRows:
    def test_booleans_stored_as_integers(self):
        task = Task(
            id="t-1",
            application_id="app-1",
            title="Send thank-you note",
            updated_at_epoch_ms=10,
            is_done=True,
        )
        row = task.to_row()

        assert row["isDone"] == 1
        assert row["isDeleted"] == 0
        assert row["needsSync"] == 1

    def test_row_round_trip_restores_types(self):
        application = make_application(is_deleted=True, needs_sync=False)
        restored = Application.from_row(application.to_row())

        assert restored == application
