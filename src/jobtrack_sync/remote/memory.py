"""
memory.py - In-process remote document store.

Used for tests, demos, and single-process deployments.
"""

import copy

from jobtrack_sync.config import TIMESTAMP_FIELDS
from jobtrack_sync.remote.base import (
    Document,
    RemoteStore,
    check_collection,
    document_id,
    document_timestamp,
)


class InMemoryRemoteStore(RemoteStore):
    """Dictionary-backed store with the same semantics as the HTTP server."""

    def __init__(self) -> None:
        self._docs: dict[tuple[str, str], dict[str, Document]] = {}

    @property
    def name(self) -> str:
        return "memory"

    async def upsert(self, user_id: str, collection: str, document: Document) -> None:
        check_collection(collection)
        doc_id = document_id(collection, document)
        document_timestamp(collection, document)
        self._docs.setdefault((user_id, collection), {})[doc_id] = copy.deepcopy(document)

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        check_collection(collection)
        self._docs.get((user_id, collection), {}).pop(doc_id, None)

    async def get_since(self, user_id: str, collection: str, since_ms: int) -> list[Document]:
        check_collection(collection)
        field = TIMESTAMP_FIELDS[collection]
        docs = [
            copy.deepcopy(doc)
            for doc in self._docs.get((user_id, collection), {}).values()
            if (doc.get(field) or 0) > since_ms
        ]
        docs.sort(key=lambda doc: doc.get(field) or 0)
        return docs

    def get(self, user_id: str, collection: str, doc_id: str) -> Document | None:
        """Direct read, for inspection in tools and tests."""
        doc = self._docs.get((user_id, collection), {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def count(self, user_id: str, collection: str) -> int:
        return len(self._docs.get((user_id, collection), {}))
