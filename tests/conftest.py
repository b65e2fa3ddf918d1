"""
conftest.py - pytest fixtures for jobtrack_sync tests.
"""

import asyncio
import itertools
import os
import tempfile

import pytest

from jobtrack_sync.auth import InMemoryAuthProvider
from jobtrack_sync.clock import FixedClock, IdGenerator
from jobtrack_sync.container import AppContainer
from jobtrack_sync.errors import RemoteStoreError
from jobtrack_sync.remote import InMemoryRemoteStore

USER = "user-1"


class SequentialIds(IdGenerator):
    """Readable, predictable ids: <prefix>-1, <prefix>-2, ..."""

    def __init__(self, prefix: str = "id"):
        self._prefix = prefix
        self._counter = itertools.count(1)

    def generate(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


class FlakyRemoteStore(InMemoryRemoteStore):
    """In-memory store that fails on demand and can serve unvalidated documents."""

    def __init__(self):
        super().__init__()
        self.fail_upsert: set[str] = set()
        self.fail_delete: set[str] = set()
        self.fail_get: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        # returned by get_since as-is, after the stored documents
        self.raw_documents: dict[str, list] = {}

    async def upsert(self, user_id, collection, document):
        self.calls.append(("upsert", collection))
        if collection in self.fail_upsert:
            raise RemoteStoreError("Simulated upsert failure", collection=collection)
        await super().upsert(user_id, collection, document)

    async def delete(self, user_id, collection, doc_id):
        self.calls.append(("delete", collection))
        if collection in self.fail_delete:
            raise RemoteStoreError("Simulated delete failure", collection=collection)
        await super().delete(user_id, collection, doc_id)

    async def get_since(self, user_id, collection, since_ms):
        self.calls.append(("get_since", collection))
        if collection in self.fail_get:
            raise RemoteStoreError("Simulated query failure", collection=collection, status_code=503)
        documents = await super().get_since(user_id, collection, since_ms)
        return documents + list(self.raw_documents.get(collection, ()))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test databases."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def clock():
    return FixedClock(1_000_000)


@pytest.fixture
def remote():
    return FlakyRemoteStore()


@pytest.fixture
def auth():
    return InMemoryAuthProvider()


@pytest.fixture
def make_device(temp_dir, remote, clock):
    """
    Factory for app containers sharing one remote store and clock.

    Each device gets its own database file and id prefix.
    """
    containers = []

    def make(name: str = "device", auth=None) -> AppContainer:
        container = AppContainer.create(
            os.path.join(temp_dir, f"{name}.db"),
            remote,
            auth or InMemoryAuthProvider(),
            clock=clock,
            ids=SequentialIds(name),
        )
        containers.append(container)
        return container

    yield make

    for container in containers:
        asyncio.run(container.close())


@pytest.fixture
def device(make_device):
    """A single app container on the shared remote."""
    return make_device("a")
