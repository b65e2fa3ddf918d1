"""
db - Database layer for jobtrack_sync.
"""

from jobtrack_sync.db.connection import (
    LocalDatabase,
    create_connection,
    verify_integrity,
)
from jobtrack_sync.db.migrations import (
    add_missing_needs_sync,
    get_columns,
    initialize_schema,
)

__all__ = [
    # connection
    "LocalDatabase",
    "create_connection",
    "verify_integrity",
    # migrations
    "add_missing_needs_sync",
    "get_columns",
    "initialize_schema",
]
