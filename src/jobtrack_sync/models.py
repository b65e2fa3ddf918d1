"""
models.py - Synchronized entity records.

Five record kinds share the same sync metadata:
- a stable string id assigned at creation
- an update timestamp refreshed on every local mutation
- an is_deleted tombstone flag (except StatusHistory)
- a needs_sync dirty flag (local only, never sent to the remote)

Records are frozen; use dataclasses.replace() to derive a new state.
Column names and document keys are the camelCase form of the field names.
"""

import dataclasses
import sqlite3
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, ClassVar, Mapping

from jobtrack_sync.config import (
    TABLE_APPLICATIONS,
    TABLE_CONTACTS,
    TABLE_INTERVIEWS,
    TABLE_STATUS_HISTORY,
    TABLE_TASKS,
)
from jobtrack_sync.errors import DecodeError


class ApplicationStatus(Enum):
    DRAFT = "DRAFT"
    APPLIED = "APPLIED"
    SCREENING = "SCREENING"
    INTERVIEW = "INTERVIEW"
    OFFER = "OFFER"
    REJECTED = "REJECTED"
    ACCEPTED = "ACCEPTED"
    WITHDRAWN = "WITHDRAWN"


class InterviewMode(Enum):
    IN_PERSON = "IN_PERSON"
    VIDEO = "VIDEO"
    PHONE = "PHONE"
    OTHER = "OTHER"


def camel_case(name: str) -> str:
    """applied_date_epoch_ms -> appliedDateEpochMs"""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@lru_cache(maxsize=None)
def _field_map(cls: type) -> tuple[tuple[str, str], ...]:
    return tuple((f.name, camel_case(f.name)) for f in dataclasses.fields(cls))


def _has_document_type(cls: type, name: str, value: Any) -> bool:
    """Timestamps are ints, flags are bools, everything else is a string."""
    if name in cls.BOOL_FIELDS:
        return isinstance(value, bool)
    if name.endswith("_epoch_ms"):
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, str)


class SyncRecord:
    """
    Mixin carrying the codec shared by every synchronized record.

    Subclasses declare which collection they live in, which field
    holds their id and timestamp, and which fields need conversion.
    """

    KIND: ClassVar[str]
    ID_FIELD: ClassVar[str] = "id"
    TIMESTAMP_FIELD: ClassVar[str] = "updated_at_epoch_ms"
    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {}
    BOOL_FIELDS: ClassVar[frozenset[str]] = frozenset({"is_deleted", "needs_sync"})
    SOFT_DELETABLE: ClassVar[bool] = True

    @property
    def record_id(self) -> str:
        return getattr(self, self.ID_FIELD)

    @property
    def timestamp(self) -> int:
        return getattr(self, self.TIMESTAMP_FIELD)

    @classmethod
    def id_column(cls) -> str:
        return camel_case(cls.ID_FIELD)

    @classmethod
    def timestamp_column(cls) -> str:
        return camel_case(cls.TIMESTAMP_FIELD)

    @classmethod
    def columns(cls) -> list[str]:
        return [column for _, column in _field_map(cls)]

    def to_document(self) -> dict[str, Any]:
        """Serialize for the remote store. needs_sync stays local."""
        doc = {}
        for name, column in _field_map(type(self)):
            if name == "needs_sync":
                continue
            value = getattr(self, name)
            if isinstance(value, Enum):
                value = value.name
            doc[column] = value
        return doc

    def to_row(self) -> dict[str, Any]:
        """Serialize for SQLite: enums by name, booleans as 0/1."""
        row = {}
        for name, column in _field_map(type(self)):
            value = getattr(self, name)
            if isinstance(value, Enum):
                value = value.name
            elif name in self.BOOL_FIELDS:
                value = 1 if value else 0
            row[column] = value
        return row

    @classmethod
    def from_row(cls, row: sqlite3.Row | Mapping[str, Any]):
        values = {}
        for name, column in _field_map(cls):
            value = row[column]
            if name in cls.BOOL_FIELDS:
                value = bool(value)
            elif name in cls.ENUM_FIELDS and value is not None:
                value = cls.ENUM_FIELDS[name][value]
            values[name] = value
        return cls(**values)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]):
        """
        Decode a remote document.

        Missing optional fields take their dataclass default; a missing
        required field, a wrongly typed value or an unknown enum name
        raises DecodeError.
        The decoded record always has needs_sync=False.
        """
        doc_id = doc.get(cls.id_column())
        values: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name == "needs_sync":
                continue
            column = camel_case(f.name)
            value = doc.get(column)
            if value is None:
                if f.default is dataclasses.MISSING:
                    raise DecodeError(f"Missing field {column!r}", kind=cls.KIND, doc_id=doc_id)
                continue
            if not _has_document_type(cls, f.name, value):
                raise DecodeError(
                    f"Field {column!r} has type {type(value).__name__}", kind=cls.KIND, doc_id=doc_id
                )
            if f.name in cls.ENUM_FIELDS:
                try:
                    value = cls.ENUM_FIELDS[f.name][value]
                except KeyError as e:
                    raise DecodeError(
                        f"Unknown {column} value {value!r}", kind=cls.KIND, doc_id=doc_id
                    ) from e
            values[f.name] = value
        return cls(needs_sync=False, **values)


@dataclass(frozen=True)
class Application(SyncRecord):
    KIND: ClassVar[str] = TABLE_APPLICATIONS
    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {"status": ApplicationStatus}

    id: str
    company: str
    role: str
    status: ApplicationStatus
    applied_date_epoch_ms: int
    updated_at_epoch_ms: int
    location: str | None = None
    job_url: str | None = None
    source: str | None = None
    notes: str = ""
    is_deleted: bool = False
    needs_sync: bool = True


@dataclass(frozen=True)
class Task(SyncRecord):
    KIND: ClassVar[str] = TABLE_TASKS
    BOOL_FIELDS: ClassVar[frozenset[str]] = frozenset({"is_done", "is_deleted", "needs_sync"})

    id: str
    application_id: str
    title: str
    updated_at_epoch_ms: int
    due_date_epoch_ms: int | None = None
    is_done: bool = False
    is_deleted: bool = False
    needs_sync: bool = True


@dataclass(frozen=True)
class Interview(SyncRecord):
    KIND: ClassVar[str] = TABLE_INTERVIEWS
    ID_FIELD: ClassVar[str] = "interview_id"
    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {"interview_mode": InterviewMode}

    interview_id: str
    application_id: str
    scheduled_date_epoch_ms: int
    interview_mode: InterviewMode
    created_at_epoch_ms: int
    updated_at_epoch_ms: int
    interviewer_name: str | None = None
    interviewer_email: str | None = None
    location: str | None = None
    meeting_link: str | None = None
    notes: str | None = None
    is_deleted: bool = False
    needs_sync: bool = True


@dataclass(frozen=True)
class Contact(SyncRecord):
    KIND: ClassVar[str] = TABLE_CONTACTS

    id: str
    application_id: str
    contact_name: str
    created_at_epoch_ms: int
    updated_at_epoch_ms: int
    contact_role: str | None = None
    email_text: str | None = None
    linked_in_url: str | None = None
    notes_text: str | None = None
    is_deleted: bool = False
    needs_sync: bool = True


@dataclass(frozen=True)
class StatusHistory(SyncRecord):
    """Append-only audit entry; never updated or deleted once inserted."""

    KIND: ClassVar[str] = TABLE_STATUS_HISTORY
    TIMESTAMP_FIELD: ClassVar[str] = "changed_at_epoch_ms"
    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {
        "from_status": ApplicationStatus,
        "to_status": ApplicationStatus,
    }
    BOOL_FIELDS: ClassVar[frozenset[str]] = frozenset({"needs_sync"})
    SOFT_DELETABLE: ClassVar[bool] = False

    id: str
    application_id: str
    to_status: ApplicationStatus
    changed_at_epoch_ms: int
    from_status: ApplicationStatus | None = None
    note: str | None = None
    needs_sync: bool = True


RECORD_TYPES: dict[str, type[SyncRecord]] = {
    cls.KIND: cls for cls in (Application, Task, Interview, Contact, StatusHistory)
}
