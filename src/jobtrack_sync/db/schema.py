"""
schema.py - Local table schema definitions.

Column names mirror the record attribute names (camelCase) so that
rows and remote documents share one vocabulary. Parent references
are not declared as foreign keys: the application layer enforces
them, and pulls may legitimately deliver children of tombstones.
"""

from typing import Final

APPLICATIONS_SCHEMA: Final[str] = """
CREATE TABLE IF NOT EXISTS applications (
    id TEXT PRIMARY KEY NOT NULL,
    company TEXT NOT NULL,
    role TEXT NOT NULL,
    location TEXT,
    jobUrl TEXT,
    source TEXT,
    status TEXT NOT NULL,
    appliedDateEpochMs INTEGER NOT NULL,
    notes TEXT NOT NULL DEFAULT '',
    updatedAtEpochMs INTEGER NOT NULL,
    isDeleted INTEGER NOT NULL DEFAULT 0 CHECK(isDeleted IN (0, 1)),
    needsSync INTEGER NOT NULL DEFAULT 1 CHECK(needsSync IN (0, 1))
) STRICT;

CREATE INDEX IF NOT EXISTS idx_applications_status ON applications(status);
"""

TASKS_SCHEMA: Final[str] = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY NOT NULL,
    applicationId TEXT NOT NULL,
    title TEXT NOT NULL,
    dueDateEpochMs INTEGER,
    isDone INTEGER NOT NULL DEFAULT 0 CHECK(isDone IN (0, 1)),
    updatedAtEpochMs INTEGER NOT NULL,
    isDeleted INTEGER NOT NULL DEFAULT 0 CHECK(isDeleted IN (0, 1)),
    needsSync INTEGER NOT NULL DEFAULT 1 CHECK(needsSync IN (0, 1))
) STRICT;

CREATE INDEX IF NOT EXISTS idx_tasks_application ON tasks(applicationId);
"""

INTERVIEWS_SCHEMA: Final[str] = """
CREATE TABLE IF NOT EXISTS interviews (
    interviewId TEXT PRIMARY KEY NOT NULL,
    applicationId TEXT NOT NULL,
    scheduledDateEpochMs INTEGER NOT NULL,
    interviewMode TEXT NOT NULL,
    interviewerName TEXT,
    interviewerEmail TEXT,
    location TEXT,
    meetingLink TEXT,
    notes TEXT,
    createdAtEpochMs INTEGER NOT NULL,
    updatedAtEpochMs INTEGER NOT NULL,
    isDeleted INTEGER NOT NULL DEFAULT 0 CHECK(isDeleted IN (0, 1)),
    needsSync INTEGER NOT NULL DEFAULT 1 CHECK(needsSync IN (0, 1))
) STRICT;

CREATE INDEX IF NOT EXISTS idx_interviews_application ON interviews(applicationId);
CREATE INDEX IF NOT EXISTS idx_interviews_scheduled ON interviews(scheduledDateEpochMs);
"""

CONTACTS_SCHEMA: Final[str] = """
CREATE TABLE IF NOT EXISTS contacts (
    id TEXT PRIMARY KEY NOT NULL,
    applicationId TEXT NOT NULL,
    contactName TEXT NOT NULL,
    contactRole TEXT,
    emailText TEXT,
    linkedInUrl TEXT,
    notesText TEXT,
    createdAtEpochMs INTEGER NOT NULL,
    updatedAtEpochMs INTEGER NOT NULL,
    isDeleted INTEGER NOT NULL DEFAULT 0 CHECK(isDeleted IN (0, 1)),
    needsSync INTEGER NOT NULL DEFAULT 1 CHECK(needsSync IN (0, 1))
) STRICT;

CREATE INDEX IF NOT EXISTS idx_contacts_application ON contacts(applicationId);
"""

# Append-only: no isDeleted column
STATUS_HISTORY_SCHEMA: Final[str] = """
CREATE TABLE IF NOT EXISTS statusHistory (
    id TEXT PRIMARY KEY NOT NULL,
    applicationId TEXT NOT NULL,
    fromStatus TEXT,
    toStatus TEXT NOT NULL,
    changedAtEpochMs INTEGER NOT NULL,
    note TEXT,
    needsSync INTEGER NOT NULL DEFAULT 1 CHECK(needsSync IN (0, 1))
) STRICT;

CREATE INDEX IF NOT EXISTS idx_history_application
ON statusHistory(applicationId, changedAtEpochMs);
"""

TABLE_SCHEMAS: Final[dict[str, str]] = {
    "applications": APPLICATIONS_SCHEMA,
    "tasks": TASKS_SCHEMA,
    "interviews": INTERVIEWS_SCHEMA,
    "contacts": CONTACTS_SCHEMA,
    "statusHistory": STATUS_HISTORY_SCHEMA,
}
