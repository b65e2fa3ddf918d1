"""
config.py - Configuration for jobtrack_sync.

Static configuration is immutable and defined at module level.
Runtime settings come from the environment via load_settings().
"""

import os
from dataclasses import dataclass
from typing import Final

# SQLite PRAGMA settings for the local store
SQLITE_PRAGMAS: Final[dict[str, str]] = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "foreign_keys": "ON",
    "busy_timeout": "5000",
}

# Local table names
TABLE_APPLICATIONS: Final[str] = "applications"
TABLE_TASKS: Final[str] = "tasks"
TABLE_INTERVIEWS: Final[str] = "interviews"
TABLE_CONTACTS: Final[str] = "contacts"
TABLE_STATUS_HISTORY: Final[str] = "statusHistory"

# Remote collections share the local table names; push and pull walk them in this order
COLLECTIONS: Final[tuple[str, ...]] = (
    TABLE_APPLICATIONS,
    TABLE_TASKS,
    TABLE_INTERVIEWS,
    TABLE_CONTACTS,
    TABLE_STATUS_HISTORY,
)

# Timestamp field compared by get_since() for each collection
TIMESTAMP_FIELDS: Final[dict[str, str]] = {
    TABLE_APPLICATIONS: "updatedAtEpochMs",
    TABLE_TASKS: "updatedAtEpochMs",
    TABLE_INTERVIEWS: "updatedAtEpochMs",
    TABLE_CONTACTS: "updatedAtEpochMs",
    TABLE_STATUS_HISTORY: "changedAtEpochMs",
}

# Column added by the migration step when missing
NEEDS_SYNC_COLUMN: Final[str] = "needsSync"

INITIAL_HISTORY_NOTE: Final[str] = "Application created"

DEFAULT_DB_PATH: Final[str] = "jobtrack.db"
DEFAULT_SERVER_DB_PATH: Final[str] = "jobtrack_server.db"
DEFAULT_HTTP_TIMEOUT: Final[float] = 30.0
DEFAULT_SERVER_SECRET: Final[str] = "change-me-in-production"


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""
    db_path: str = DEFAULT_DB_PATH
    remote_url: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = "INFO"
    log_json: bool = False
    server_db_path: str = DEFAULT_SERVER_DB_PATH
    server_secret: str = DEFAULT_SERVER_SECRET


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from JOBTRACK_* environment variables."""
    env = os.environ if environ is None else environ
    return Settings(
        db_path=env.get("JOBTRACK_DB_PATH", DEFAULT_DB_PATH),
        remote_url=env.get("JOBTRACK_REMOTE_URL") or None,
        http_timeout=float(env.get("JOBTRACK_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)),
        log_level=env.get("JOBTRACK_LOG_LEVEL", "INFO").upper(),
        log_json=env.get("JOBTRACK_LOG_JSON", "0") in ("1", "true", "yes"),
        server_db_path=env.get("JOBTRACK_SERVER_DB_PATH", DEFAULT_SERVER_DB_PATH),
        server_secret=env.get("JOBTRACK_SERVER_SECRET", DEFAULT_SERVER_SECRET),
    )
