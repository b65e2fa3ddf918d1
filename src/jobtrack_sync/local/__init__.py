"""
local - Observable local data access, one source per record kind.
"""

from jobtrack_sync.local.applications import ApplicationLocalDataSource
from jobtrack_sync.local.base import LocalDataSource, MutableLocalDataSource
from jobtrack_sync.local.contacts import ContactLocalDataSource
from jobtrack_sync.local.interviews import InterviewLocalDataSource
from jobtrack_sync.local.sources import LocalSources
from jobtrack_sync.local.status_history import StatusHistoryLocalDataSource
from jobtrack_sync.local.tasks import TaskLocalDataSource

__all__ = [
    "LocalDataSource",
    "MutableLocalDataSource",
    "ApplicationLocalDataSource",
    "TaskLocalDataSource",
    "InterviewLocalDataSource",
    "ContactLocalDataSource",
    "StatusHistoryLocalDataSource",
    "LocalSources",
]
