"""
jobtrack_sync - Local-first job application tracker

Offline SQLite storage for applications, tasks, interviews,
contacts and status history, reconciled with a per-user remote
document store by a push/pull last-writer-wins sync engine.
"""

from jobtrack_sync.container import AppContainer
from jobtrack_sync.errors import (
    AuthError,
    DatabaseError,
    DecodeError,
    RemoteStoreError,
    SchemaError,
    SyncError,
    ValidationError,
)
from jobtrack_sync.models import (
    Application,
    ApplicationStatus,
    Contact,
    Interview,
    InterviewMode,
    StatusHistory,
    Task,
)
from jobtrack_sync.result import Err, Ok, Result
from jobtrack_sync.sync import SyncCoordinator, SyncEngine, SyncReport, SyncState

__version__ = "0.1.0"
__all__ = [
    # Wiring
    "AppContainer",
    # Sync
    "SyncEngine",
    "SyncCoordinator",
    "SyncReport",
    "SyncState",
    # Records
    "Application",
    "ApplicationStatus",
    "Task",
    "Interview",
    "InterviewMode",
    "Contact",
    "StatusHistory",
    # Results
    "Ok",
    "Err",
    "Result",
    # Errors
    "SyncError",
    "SchemaError",
    "DatabaseError",
    "RemoteStoreError",
    "AuthError",
    "ValidationError",
    "DecodeError",
]
