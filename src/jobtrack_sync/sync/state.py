"""
state.py - Observable synchronization status.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SyncStatus(Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


@dataclass(frozen=True)
class SyncState:
    """
    Snapshot published by the coordinator.

    last_synced_at_epoch_ms is the watermark for the next pull;
    None means nothing has been pulled yet.
    """

    needs_sync: bool = False
    last_synced_at_epoch_ms: Optional[int] = None
    is_syncing: bool = False
    sync_error: Optional[Exception] = None

    @property
    def status(self) -> SyncStatus:
        if self.is_syncing:
            return SyncStatus.SYNCING
        if self.sync_error is not None:
            return SyncStatus.ERROR
        return SyncStatus.IDLE
