"""
interviews.py - Local data access for scheduled interviews.
"""

from typing import AsyncIterator

from jobtrack_sync.local.base import MutableLocalDataSource
from jobtrack_sync.models import Interview


class InterviewLocalDataSource(MutableLocalDataSource[Interview]):
    RECORD = Interview
    ORDER_BY = "scheduledDateEpochMs ASC"

    def observe_upcoming(self, current_time_ms: int) -> AsyncIterator[list[Interview]]:
        return self._observe_list(
            f"scheduledDateEpochMs >= ? AND {self.LIVE}", (current_time_ms,)
        )
