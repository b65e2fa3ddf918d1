"""
remote/__init__.py - Remote document stores.

Provides pluggable backends for the cloud side of synchronization.
The FastAPI server lives in jobtrack_sync.remote.server and is not
imported here.
"""

from jobtrack_sync.remote.base import (
    Document,
    RemoteStore,
    check_collection,
    document_id,
    document_timestamp,
)
from jobtrack_sync.remote.http_store import HTTPRemoteStore
from jobtrack_sync.remote.memory import InMemoryRemoteStore

__all__ = [
    "Document",
    "RemoteStore",
    "check_collection",
    "document_id",
    "document_timestamp",
    "HTTPRemoteStore",
    "InMemoryRemoteStore",
]
