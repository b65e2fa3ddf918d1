"""
applications.py - Local data access for job applications.
"""

from typing import AsyncIterator

from jobtrack_sync.local.base import MutableLocalDataSource
from jobtrack_sync.models import Application, ApplicationStatus


class ApplicationLocalDataSource(MutableLocalDataSource[Application]):
    RECORD = Application
    ORDER_BY = "updatedAtEpochMs DESC"

    def observe_by_status(self, status: ApplicationStatus) -> AsyncIterator[list[Application]]:
        return self._observe_list(f"status = ? AND {self.LIVE}", (status.name,))

    def search_by_keyword(self, keyword: str) -> AsyncIterator[list[Application]]:
        """Live list of applications whose company or role contains keyword."""
        pattern = f"%{keyword}%"
        return self._observe_list(
            f"(company LIKE ? OR role LIKE ?) AND {self.LIVE}", (pattern, pattern)
        )
