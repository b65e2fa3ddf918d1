"""
migrations.py - Database initialization and schema management.

Handles creation of entity tables and the single supported
migration: adding a missing needsSync column.
"""

import logging
import sqlite3

from jobtrack_sync.config import NEEDS_SYNC_COLUMN
from jobtrack_sync.db.schema import TABLE_SCHEMAS
from jobtrack_sync.errors import DatabaseError, SchemaError

logger = logging.getLogger(__name__)


def initialize_schema(conn: sqlite3.Connection) -> list[str]:
    """
    Create all entity tables and bring old tables up to date.

    This is idempotent: can be called on every open.

    Args:
        conn: SQLite connection

    Returns:
        Names of tables that received a needsSync column

    Raises:
        SchemaError: If table creation or migration fails
    """
    for table_name, statement in TABLE_SCHEMAS.items():
        try:
            for sql in statement.strip().split(";"):
                sql = sql.strip()
                if sql:
                    conn.execute(sql)
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to create table: {e}", table_name=table_name) from e

    migrated = []
    for table_name in TABLE_SCHEMAS:
        if add_missing_needs_sync(conn, table_name):
            migrated.append(table_name)
        _create_pending_index(conn, table_name)

    if migrated:
        logger.info("Added %s column to: %s", NEEDS_SYNC_COLUMN, ", ".join(migrated))
    return migrated


def get_columns(conn: sqlite3.Connection, table_name: str) -> list[str]:
    """
    List the column names of a table.

    Raises:
        DatabaseError: If the table cannot be inspected
    """
    try:
        cursor = conn.execute(f'PRAGMA table_info("{table_name}")')
        return [row[1] for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise DatabaseError(
            f"Failed to inspect table: {e}",
            operation="table_info",
        ) from e


def add_missing_needs_sync(conn: sqlite3.Connection, table_name: str) -> bool:
    """
    Add needsSync with DEFAULT 1 when the column is absent.

    Pre-existing rows therefore count as needing sync.

    Returns:
        True if the column was added
    """
    if NEEDS_SYNC_COLUMN in get_columns(conn, table_name):
        return False

    sql = (
        f'ALTER TABLE "{table_name}" '
        f"ADD COLUMN {NEEDS_SYNC_COLUMN} INTEGER NOT NULL DEFAULT 1"
    )
    try:
        conn.execute(sql)
    except sqlite3.Error as e:
        raise SchemaError(
            f"Failed to add {NEEDS_SYNC_COLUMN} column: {e}",
            table_name=table_name,
        ) from e
    return True


def _create_pending_index(conn: sqlite3.Connection, table_name: str) -> None:
    sql = (
        f'CREATE INDEX IF NOT EXISTS "idx_{table_name}_pending" '
        f'ON "{table_name}"({NEEDS_SYNC_COLUMN})'
    )
    try:
        conn.execute(sql)
    except sqlite3.Error as e:
        raise SchemaError(f"Failed to create pending index: {e}", table_name=table_name) from e
