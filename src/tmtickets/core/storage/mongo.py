"""MongoDB storage backend.

Layout:
- counters: ``{_id: key, value, version}``; CAS is an ``update_one`` filtered on version.
- drafts: ``{_id: id, document: {...}, tags: {jobNumber, jobName, date}}``; tags are
  queried through the ``tags_job_number`` index, passed as a hint so a missing
  index fails loudly instead of silently scanning.
- reference: ``{partition, rowKey, ...columns}``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import urlparse
from uuid import uuid4

import structlog
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from tmtickets.config import Config
from tmtickets.core.storage.base import (
    CounterStore,
    DraftStore,
    ReferenceStore,
    StorageBackend,
    TaggedEntry,
    VersionedRecord,
    parse_body,
)
from tmtickets.errors import StorageError, TagIndexUnavailableError, VersionConflictError

logger = structlog.get_logger(__name__)

TAG_INDEX_NAME = "tags_job_number"


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into StorageError."""
    try:
        yield
    except PyMongoError as e:
        raise StorageError(f"{operation} failed: {e}") from e


class MongoCounterStore(CounterStore):
    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def get(self, key: str) -> VersionedRecord | None:
        with storage_errors("counter read"):
            doc = await self._collection.find_one({"_id": key})
        if doc is None:
            return None
        return VersionedRecord(key=key, value=int(doc["value"]), version=str(doc["version"]))

    async def create(self, key: str, value: int) -> VersionedRecord:
        record = VersionedRecord(key=key, value=value, version=uuid4().hex)
        try:
            await self._collection.insert_one({"_id": key, "value": value, "version": record.version})
        except DuplicateKeyError as e:
            raise VersionConflictError(f"Counter '{key}' already exists") from e
        except PyMongoError as e:
            raise StorageError(f"counter create failed: {e}") from e
        return record

    async def replace(self, key: str, value: int, expected_version: str) -> VersionedRecord:
        record = VersionedRecord(key=key, value=value, version=uuid4().hex)
        with storage_errors("counter replace"):
            result = await self._collection.update_one(
                {"_id": key, "version": expected_version},
                {"$set": {"value": value, "version": record.version}},
            )
        if result.matched_count == 0:
            raise VersionConflictError(f"Counter '{key}' was modified concurrently")
        return record


class MongoDraftStore(DraftStore):
    def __init__(self, collection: AsyncCollection[dict[str, Any]], tag_index_enabled: bool = True) -> None:
        self._collection = collection
        self.tag_index_enabled = tag_index_enabled

    async def create_indexes(self) -> None:
        if self.tag_index_enabled:
            with storage_errors("tag index creation"):
                await self._collection.create_index([("tags.jobNumber", ASCENDING)], name=TAG_INDEX_NAME)

    async def put(self, draft_id: str, document: dict[str, Any]) -> None:
        with storage_errors("draft write"):
            await self._collection.replace_one({"_id": draft_id}, {"_id": draft_id, "document": document}, upsert=True)

    async def get(self, draft_id: str) -> dict[str, Any] | None:
        with storage_errors("draft read"):
            doc = await self._collection.find_one({"_id": draft_id}, {"document": 1})
        if doc is None:
            return None
        return parse_body(doc.get("document"))

    async def delete(self, draft_id: str) -> bool:
        with storage_errors("draft delete"):
            result = await self._collection.delete_one({"_id": draft_id})
        return result.deleted_count > 0

    async def scan(self, limit: int) -> AsyncIterator[TaggedEntry]:
        async for entry in self._iterate({}, limit, "draft scan"):
            yield entry

    async def scan_untagged(self, limit: int) -> AsyncIterator[TaggedEntry]:
        async for entry in self._iterate({"tags.jobNumber": {"$exists": False}}, limit, "untagged draft scan"):
            yield entry

    async def set_tags(self, draft_id: str, tags: dict[str, str]) -> bool:
        # Saved bodies carry jobNumber as text, so the filter compares like for like
        query = {"_id": draft_id, "document.jobNumber": tags["jobNumber"]}
        with storage_errors("draft tag write"):
            result = await self._collection.update_one(query, {"$set": {"tags": tags}})
        return result.matched_count > 0

    async def find_by_tags(self, job_number: str, limit: int) -> AsyncIterator[TaggedEntry]:
        if not self.tag_index_enabled:
            raise TagIndexUnavailableError("Tag index is disabled")
        try:
            async for entry in self._iterate({"tags.jobNumber": job_number}, limit, "tag query", hint=TAG_INDEX_NAME):
                yield entry
        except StorageError as e:
            if isinstance(e.__cause__, OperationFailure):
                raise TagIndexUnavailableError(f"Tag index query failed: {e.__cause__}") from e.__cause__
            raise

    async def _iterate(
        self, query: dict[str, Any], limit: int, operation: str, hint: str | None = None
    ) -> AsyncIterator[TaggedEntry]:
        with storage_errors(operation):
            cursor = self._collection.find(query, {"tags": 1}).sort("_id", ASCENDING).limit(limit)
            if hint is not None:
                cursor = cursor.hint(hint)
            async for doc in cursor:
                yield TaggedEntry(id=str(doc["_id"]), tags=dict(doc.get("tags") or {}))


class MongoReferenceStore(ReferenceStore):
    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        with storage_errors("reference index creation"):
            await self._collection.create_index([("partition", ASCENDING), ("rowKey", ASCENDING)], unique=True)

    async def list_partition(self, partition: str) -> AsyncIterator[dict[str, Any]]:
        with storage_errors("reference partition read"):
            cursor = self._collection.find({"partition": partition}, {"_id": 0}).sort("rowKey", ASCENDING)
            async for doc in cursor:
                yield doc

    async def list_row_key_range(self, partition: str, low: str, high: str, limit: int) -> AsyncIterator[dict[str, Any]]:
        query = {"partition": partition, "rowKey": {"$gte": low, "$lt": high}}
        with storage_errors("reference range read"):
            cursor = self._collection.find(query, {"_id": 0}).sort("rowKey", ASCENDING).limit(limit)
            async for doc in cursor:
                yield doc

    async def find_one(self, partition: str, value: str, columns: tuple[str, ...]) -> dict[str, Any] | None:
        query = {"partition": partition, "$or": [{column: value} for column in columns]}
        with storage_errors("reference lookup"):
            return await self._collection.find_one(query, {"_id": 0}, sort=[("rowKey", ASCENDING)])


class MongoStorageBackend(StorageBackend):
    name = "mongo"

    def __init__(self, config: Config) -> None:
        self.client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(config.database_url)
        database = self.client.get_database(urlparse(config.database_url).path[1:] or "tmtickets")
        self.counters = MongoCounterStore(database.get_collection(config.counters_collection))
        self.drafts = MongoDraftStore(
            database.get_collection(config.drafts_collection), tag_index_enabled=config.tag_index_enabled
        )
        self.reference = MongoReferenceStore(database.get_collection(config.reference_collection))

    async def on_start(self) -> None:
        await self.drafts.create_indexes()
        await self.reference.create_indexes()
        logger.debug("mongo_backend_started", tag_index_enabled=self.drafts.tag_index_enabled)

    async def on_stop(self) -> None:
        await self.client.aclose()
