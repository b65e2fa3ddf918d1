"""
errors.py - Domain-specific exceptions for jobtrack_sync.

All exceptions inherit from SyncError for unified handling.
Each exception type represents a distinct failure mode.
"""

from typing import Any


class SyncError(Exception):
    """Base exception for all jobtrack_sync errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class SchemaError(SyncError):
    """
    Raised when the local schema cannot be created or migrated.
    """

    def __init__(self, message: str, table_name: str | None = None) -> None:
        context = {}
        if table_name is not None:
            context["table_name"] = table_name
        super().__init__(message, context=context)
        self.table_name = table_name


class DatabaseError(SyncError):
    """
    Raised when a local database operation fails unexpectedly.

    This wraps SQLite errors with additional context about
    what operation was being attempted. It is never caught by
    the sync engine: local failures surface to the caller.
    """

    def __init__(
        self, message: str, operation: str | None = None, sql: str | None = None
    ) -> None:
        context = {}
        if operation is not None:
            context["operation"] = operation
        if sql is not None:
            # Truncate long SQL for readability
            context["sql"] = sql[:200] + "..." if len(sql) > 200 else sql
        super().__init__(message, context=context)
        self.operation = operation
        self.sql = sql


class RemoteStoreError(SyncError):
    """
    Raised when a call to the remote document store fails.

    Covers network failures, HTTP errors, permission and quota
    rejections. The sync engine converts it into an Err result.
    """

    def __init__(
        self,
        message: str,
        collection: str | None = None,
        status_code: int | None = None,
    ) -> None:
        context = {}
        if collection is not None:
            context["collection"] = collection
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context=context)
        self.collection = collection
        self.status_code = status_code


class AuthError(SyncError):
    """Raised (or returned in an Err) when authentication fails."""

    def __init__(self, message: str, email: str | None = None) -> None:
        context = {}
        if email is not None:
            context["email"] = email
        super().__init__(message, context=context)
        self.email = email


class ValidationError(SyncError):
    """
    Raised when input validation fails.

    This includes blank required fields and child records
    whose application_id does not reference a live application.
    """

    def __init__(
        self, message: str, field: str | None = None, value: Any = None
    ) -> None:
        context = {}
        if field is not None:
            context["field"] = field
        if value is not None:
            context["value"] = repr(value)[:100]
        super().__init__(message, context=context)
        self.field = field
        self.value = value


class DecodeError(SyncError):
    """Raised when a remote document cannot be decoded into a record."""

    def __init__(self, message: str, kind: str | None = None, doc_id: str | None = None) -> None:
        context = {}
        if kind is not None:
            context["kind"] = kind
        if doc_id is not None:
            context["doc_id"] = doc_id
        super().__init__(message, context=context)
        self.kind = kind
        self.doc_id = doc_id
