"""Shared pytest fixtures."""

import pytest
from fastapi.testclient import TestClient

from tmtickets.app import App
from tmtickets.config import Config
from tmtickets.core.core import Core
from tmtickets.core.storage.memory import MemoryCounterStore, MemoryDraftStore, MemoryStorageBackend
from tmtickets.errors import StorageError, VersionConflictError
from tmtickets.web.server import create_fastapi_app


class FaultyCounterStore(MemoryCounterStore):
    """Memory counter store with switchable failures."""

    def __init__(self):
        super().__init__()
        self.always_conflict = False
        self.unavailable = False
        self.replace_calls = 0

    async def get(self, key):
        if self.unavailable:
            raise StorageError("counter store is down")
        return await super().get(key)

    async def replace(self, key, value, expected_version):
        self.replace_calls += 1
        if self.always_conflict:
            raise VersionConflictError(f"Counter '{key}' was modified concurrently")
        return await super().replace(key, value, expected_version)


class FaultyDraftStore(MemoryDraftStore):
    """Memory draft store with switchable failures and a read counter."""

    def __init__(self, tag_index_enabled=True):
        super().__init__(tag_index_enabled=tag_index_enabled)
        self.fail_tags = False
        self.unreadable: set[str] = set()
        self.unavailable = False
        self.reads = 0

    async def get(self, draft_id):
        self.reads += 1
        if self.unavailable or draft_id in self.unreadable:
            raise StorageError(f"draft '{draft_id}' could not be read")
        return await super().get(draft_id)

    async def set_tags(self, draft_id, tags):
        if self.fail_tags:
            raise StorageError("tag write refused")
        return await super().set_tags(draft_id, tags)

    def tags_of(self, draft_id):
        return dict(self._tags.get(draft_id, {}))


@pytest.fixture
def config():
    """Config for the in-memory backend with near-zero retry delays."""
    return Config(_env_file=None, storage_backend="memory", ticket_number_backoff=0.001)


@pytest.fixture
def backend():
    """Memory backend whose stores can be told to fail."""
    backend = MemoryStorageBackend()
    backend.counters = FaultyCounterStore()
    backend.drafts = FaultyDraftStore()
    return backend


@pytest.fixture
def core(config, backend):
    return Core(config, backend)


@pytest.fixture
def client(config, backend):
    """HTTP client running the full application lifespan."""
    with TestClient(create_fastapi_app(App(config, backend), config)) as client:
        yield client
