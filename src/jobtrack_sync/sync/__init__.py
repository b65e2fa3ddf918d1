"""
sync - Push/pull engine and the coordinator that drives it.
"""

from jobtrack_sync.sync.coordinator import SyncCoordinator
from jobtrack_sync.sync.engine import SyncEngine, SyncReport
from jobtrack_sync.sync.state import SyncState, SyncStatus

__all__ = [
    "SyncCoordinator",
    "SyncEngine",
    "SyncReport",
    "SyncState",
    "SyncStatus",
]
