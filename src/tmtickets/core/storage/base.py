"""Storage abstractions shared by the MongoDB and in-memory backends.

Every store speaks plain dicts and raises the exceptions from
``tmtickets.errors``: ``StorageError`` for transport or server failures,
``VersionConflictError`` for lost conditional writes and
``TagIndexUnavailableError`` when tag queries are not supported.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from tmtickets.utils import as_text

TAG_KEYS = ("jobNumber", "jobName", "date")


@dataclass(frozen=True)
class VersionedRecord:
    """A single counter row with its optimistic concurrency token."""

    key: str
    value: int
    version: str


@dataclass(frozen=True)
class TaggedEntry:
    """Storage key of a draft with the tags attached to it (possibly none)."""

    id: str
    tags: dict[str, str] = field(default_factory=dict)


class CounterStore(ABC):
    """Versioned key/value records supporting compare-and-swap."""

    @abstractmethod
    async def get(self, key: str) -> VersionedRecord | None: ...

    @abstractmethod
    async def create(self, key: str, value: int) -> VersionedRecord:
        """Create the record; raises VersionConflictError if it already exists."""

    @abstractmethod
    async def replace(self, key: str, value: int, expected_version: str) -> VersionedRecord:
        """Replace the value if the stored version still equals ``expected_version``.

        Raises VersionConflictError when the record changed (or vanished) since it was read.
        """


class DraftStore(ABC):
    """Draft documents keyed by id, with tags attached to each record."""

    @abstractmethod
    async def put(self, draft_id: str, document: dict[str, Any]) -> None:
        """Upsert the document, replacing any previous body and clearing its tags."""

    @abstractmethod
    async def get(self, draft_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def delete(self, draft_id: str) -> bool:
        """Delete the record; returns False if it did not exist."""

    @abstractmethod
    def scan(self, limit: int) -> AsyncIterator[TaggedEntry]:
        """Enumerate up to ``limit`` records ordered by id."""

    @abstractmethod
    def scan_untagged(self, limit: int) -> AsyncIterator[TaggedEntry]:
        """Enumerate up to ``limit`` records that carry no jobNumber tag."""

    @abstractmethod
    async def set_tags(self, draft_id: str, tags: dict[str, str]) -> bool:
        """Attach tags only if the stored body still has ``tags["jobNumber"]``.

        Returns False when the record is gone or its body names another job,
        so a tag computed from an older body never lands on a newer one.
        """

    @abstractmethod
    def find_by_tags(self, job_number: str, limit: int) -> AsyncIterator[TaggedEntry]:
        """Query the tag index; raises TagIndexUnavailableError if there is none."""


class ReferenceStore(ABC):
    """Read-only reference entities grouped in partitions."""

    @abstractmethod
    def list_partition(self, partition: str) -> AsyncIterator[dict[str, Any]]:
        """Enumerate entities of a partition ordered by rowKey."""

    @abstractmethod
    def list_row_key_range(self, partition: str, low: str, high: str, limit: int) -> AsyncIterator[dict[str, Any]]:
        """Enumerate entities with ``low <= rowKey < high``."""

    @abstractmethod
    async def find_one(self, partition: str, value: str, columns: tuple[str, ...]) -> dict[str, Any] | None:
        """Return the first entity whose value in any of ``columns`` equals ``value``."""


class StorageBackend(ABC):
    """Per-process bundle of stores, shared by reference between services."""

    name: str
    counters: CounterStore
    drafts: DraftStore
    reference: ReferenceStore

    async def on_start(self) -> None:
        """Prepare collections and indexes."""

    async def on_stop(self) -> None:
        """Release connections."""


def make_tags(document: dict[str, Any]) -> dict[str, str]:
    """Extract index tags from a draft body.

    jobNumber is always present (possibly empty) so the record counts as indexed.
    """
    tags = {"jobNumber": as_text(document.get("jobNumber"))}
    for key in TAG_KEYS[1:]:
        value = as_text(document.get(key))
        if value:
            tags[key] = value
    return tags


def parse_body(raw: Any) -> dict[str, Any]:
    """Coerce a stored draft body into a dict.

    Bodies are normally stored as documents; JSON text (as imported from blob
    storage) is decoded. Raises ValueError for anything else.
    """
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    if not isinstance(raw, dict):
        raise ValueError(f"Draft body must be an object, got {type(raw).__name__}")
    return raw
