"""
base.py - Abstract base class for remote document stores.

All remote implementations must inherit from RemoteStore.
Documents live in per-user namespaces, one collection per
record kind, keyed by the record id.
"""

from abc import ABC, abstractmethod
from typing import Any

from jobtrack_sync.config import COLLECTIONS, TIMESTAMP_FIELDS
from jobtrack_sync.errors import RemoteStoreError
from jobtrack_sync.models import RECORD_TYPES

Document = dict[str, Any]


class RemoteStore(ABC):
    """
    Abstract base class for the remote side of synchronization.

    Implementations must provide:
    - Full-document upsert keyed by id
    - Document deletion
    - "Changed since" range queries on the collection's timestamp field

    Every failure must surface as RemoteStoreError.
    """

    @abstractmethod
    async def upsert(self, user_id: str, collection: str, document: Document) -> None:
        """Replace (or create) the document whose id matches the record id."""
        pass

    @abstractmethod
    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        """Remove a document. Deleting a missing document is not an error."""
        pass

    @abstractmethod
    async def get_since(self, user_id: str, collection: str, since_ms: int) -> list[Document]:
        """
        Fetch documents whose timestamp is strictly greater than since_ms.

        Returns:
            Documents in ascending timestamp order
        """
        pass

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name for logging."""
        pass


def check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise RemoteStoreError(f"Unknown collection {collection!r}", collection=collection)


def document_id(collection: str, document: Document) -> str:
    """Read the record id out of a document for its collection."""
    id_column = RECORD_TYPES[collection].id_column()
    doc_id = document.get(id_column)
    if not doc_id or not isinstance(doc_id, str):
        raise RemoteStoreError(f"Document has no {id_column!r}", collection=collection)
    return doc_id


def document_timestamp(collection: str, document: Document) -> int:
    """Read the timestamp a document is ordered by. Absent counts as 0."""
    field = TIMESTAMP_FIELDS[collection]
    value = document.get(field)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise RemoteStoreError(f"Document {field!r} must be an integer", collection=collection)
    return value
