"""Process-local storage backend for development and tests.

Each operation yields to the event loop once before touching state, so
concurrent callers interleave the way they would around network round trips.
State lives as long as the backend instance.
"""

import asyncio
import copy
from collections.abc import AsyncIterator
from typing import Any
from uuid import uuid4

from tmtickets.core.storage.base import (
    CounterStore,
    DraftStore,
    ReferenceStore,
    StorageBackend,
    TaggedEntry,
    VersionedRecord,
)
from tmtickets.errors import TagIndexUnavailableError, VersionConflictError
from tmtickets.utils import as_text


async def _io() -> None:
    await asyncio.sleep(0)


class MemoryCounterStore(CounterStore):
    def __init__(self) -> None:
        self._records: dict[str, VersionedRecord] = {}

    async def get(self, key: str) -> VersionedRecord | None:
        await _io()
        return self._records.get(key)

    async def create(self, key: str, value: int) -> VersionedRecord:
        await _io()
        if key in self._records:
            raise VersionConflictError(f"Counter '{key}' already exists")
        record = VersionedRecord(key=key, value=value, version=uuid4().hex)
        self._records[key] = record
        return record

    async def replace(self, key: str, value: int, expected_version: str) -> VersionedRecord:
        await _io()
        current = self._records.get(key)
        if current is None or current.version != expected_version:
            raise VersionConflictError(f"Counter '{key}' was modified concurrently")
        record = VersionedRecord(key=key, value=value, version=uuid4().hex)
        self._records[key] = record
        return record


class MemoryDraftStore(DraftStore):
    def __init__(self, tag_index_enabled: bool = True) -> None:
        self.tag_index_enabled = tag_index_enabled
        self._documents: dict[str, dict[str, Any]] = {}
        self._tags: dict[str, dict[str, str]] = {}

    async def put(self, draft_id: str, document: dict[str, Any]) -> None:
        await _io()
        self._documents[draft_id] = copy.deepcopy(document)
        self._tags.pop(draft_id, None)

    async def get(self, draft_id: str) -> dict[str, Any] | None:
        await _io()
        document = self._documents.get(draft_id)
        return copy.deepcopy(document) if document is not None else None

    async def delete(self, draft_id: str) -> bool:
        await _io()
        self._tags.pop(draft_id, None)
        return self._documents.pop(draft_id, None) is not None

    async def scan(self, limit: int) -> AsyncIterator[TaggedEntry]:
        await _io()
        for draft_id in sorted(self._documents)[:limit]:
            yield self._entry(draft_id)

    async def scan_untagged(self, limit: int) -> AsyncIterator[TaggedEntry]:
        await _io()
        untagged = [draft_id for draft_id in sorted(self._documents) if "jobNumber" not in self._tags.get(draft_id, {})]
        for draft_id in untagged[:limit]:
            yield self._entry(draft_id)

    async def set_tags(self, draft_id: str, tags: dict[str, str]) -> bool:
        await _io()
        document = self._documents.get(draft_id)
        if document is None or as_text(document.get("jobNumber")) != tags.get("jobNumber"):
            return False
        self._tags[draft_id] = dict(tags)
        return True

    async def find_by_tags(self, job_number: str, limit: int) -> AsyncIterator[TaggedEntry]:
        await _io()
        if not self.tag_index_enabled:
            raise TagIndexUnavailableError("Tag index is disabled")
        matches = [draft_id for draft_id, tags in sorted(self._tags.items()) if tags.get("jobNumber") == job_number]
        for draft_id in matches[:limit]:
            yield self._entry(draft_id)

    def _entry(self, draft_id: str) -> TaggedEntry:
        return TaggedEntry(id=draft_id, tags=dict(self._tags.get(draft_id, {})))


class MemoryReferenceStore(ReferenceStore):
    def __init__(self, entities: list[dict[str, Any]] | None = None) -> None:
        self._entities: list[dict[str, Any]] = []
        for entity in entities or []:
            self.add(entity)

    def add(self, entity: dict[str, Any]) -> None:
        """Insert an entity; it must carry ``partition`` and ``rowKey``."""
        self._entities.append(dict(entity))
        self._entities.sort(key=lambda e: (e["partition"], e["rowKey"]))

    async def list_partition(self, partition: str) -> AsyncIterator[dict[str, Any]]:
        await _io()
        for entity in self._entities:
            if entity["partition"] == partition:
                yield dict(entity)

    async def list_row_key_range(self, partition: str, low: str, high: str, limit: int) -> AsyncIterator[dict[str, Any]]:
        await _io()
        count = 0
        for entity in self._entities:
            if count >= limit:
                break
            if entity["partition"] == partition and low <= entity["rowKey"] < high:
                count += 1
                yield dict(entity)

    async def find_one(self, partition: str, value: str, columns: tuple[str, ...]) -> dict[str, Any] | None:
        await _io()
        for entity in self._entities:
            if entity["partition"] == partition and any(entity.get(column) == value for column in columns):
                return dict(entity)
        return None


class MemoryStorageBackend(StorageBackend):
    name = "memory"

    def __init__(self, tag_index_enabled: bool = True) -> None:
        self.counters = MemoryCounterStore()
        self.drafts = MemoryDraftStore(tag_index_enabled=tag_index_enabled)
        self.reference = MemoryReferenceStore()
