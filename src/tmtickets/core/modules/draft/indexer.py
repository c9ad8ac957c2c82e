"""Self-healing job-number index over the draft store.

The tag index is a hint, never ground truth. Tags on a record are either
absent or agree with the body on jobNumber (a save clears them, and a tag
write is refused unless the stored body still names the tagged job),
so the member set for a job is:

    records tagged with the job  +  untagged records whose body names the job

``fast_lookup`` answers the first half from the index. The second half comes
from reading untagged bodies, which also backfills their tags so the next
lookup needs no reads. When the index itself is unavailable,
``authoritative_scan`` walks every record instead.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import structlog

from tmtickets.core.modules.draft.models import DraftSummary
from tmtickets.core.storage.base import DraftStore, TaggedEntry, make_tags
from tmtickets.errors import StorageError

logger = structlog.get_logger(__name__)

READ_CONCURRENCY = 16


class DraftIndexer:
    def __init__(self, store: DraftStore, list_limit: int, scan_limit: int) -> None:
        self._store = store
        self._list_limit = list_limit
        self._scan_limit = scan_limit

    async def tag(self, draft_id: str, document: dict[str, Any], event: str = "draft_tag_failed") -> bool:
        """Attach index tags to a stored draft. Failures are logged, never raised.

        Returns False when the write failed or was refused because the stored
        body has moved on to another job since ``document`` was read.
        """
        try:
            applied = await self._store.set_tags(draft_id, make_tags(document))
        except StorageError as e:
            logger.warning(event, draft_id=draft_id, error=str(e))
            return False
        if not applied:
            logger.debug("draft_tag_skipped", draft_id=draft_id, job_number=document.get("jobNumber"))
        return applied

    async def list_by_job_number(self, job_number: str) -> list[DraftSummary]:
        """Drafts of a job ordered by date descending (string order; undated last)."""
        try:
            found = await self.fast_lookup(job_number)
        except StorageError as e:
            logger.warning("tag_index_unavailable", job_number=job_number, error=str(e))
            found = await self.authoritative_scan(job_number)
        else:
            found.update(await self.reconcile_untagged(job_number))

        items = sorted(found.values(), key=lambda s: s.id)
        items.sort(key=lambda s: s.date or "", reverse=True)
        return items[: self._list_limit]

    async def fast_lookup(self, job_number: str) -> dict[str, DraftSummary]:
        """Index-only lookup; may be incomplete.

        Bounded by the scan limit; the list limit applies after the date sort.
        """
        entries = await self._drain(self._store.find_by_tags(job_number, self._scan_limit), "tagged")
        return {entry.id: DraftSummary.from_tags(entry.id, entry.tags) for entry in entries}

    async def reconcile_untagged(self, job_number: str) -> dict[str, DraftSummary]:
        """Read untagged drafts, backfill their tags and return those of the job."""
        entries = await self._drain(self._store.scan_untagged(self._scan_limit), "untagged")
        return await self._match_bodies(entries, job_number)

    async def authoritative_scan(self, job_number: str) -> dict[str, DraftSummary]:
        """Walk every draft; always correct, and repairs tags as a side effect."""
        entries = await self._drain(self._store.scan(self._scan_limit), "full")

        found: dict[str, DraftSummary] = {}
        to_read: list[TaggedEntry] = []
        for entry in entries:
            if entry.tags.get("jobNumber") == job_number:
                found[entry.id] = DraftSummary.from_tags(entry.id, entry.tags)
            else:
                to_read.append(entry)
        found.update(await self._match_bodies(to_read, job_number))
        return found

    async def _drain(self, iterator: AsyncIterator[TaggedEntry], scan: str) -> list[TaggedEntry]:
        entries = [entry async for entry in iterator]
        if len(entries) >= self._scan_limit:
            logger.warning("draft_scan_truncated", scan=scan, limit=self._scan_limit)
        return entries

    async def _match_bodies(self, entries: list[TaggedEntry], job_number: str) -> dict[str, DraftSummary]:
        found: dict[str, DraftSummary] = {}
        for start in range(0, len(entries), READ_CONCURRENCY):
            chunk = entries[start : start + READ_CONCURRENCY]
            summaries = await asyncio.gather(*(self._read_and_repair(entry) for entry in chunk))
            for summary in summaries:
                if summary is not None and summary.job_number == job_number:
                    found[summary.id] = summary
        return found

    async def _read_and_repair(self, entry: TaggedEntry) -> DraftSummary | None:
        try:
            document = await self._store.get(entry.id)
        except (StorageError, ValueError) as e:
            logger.warning("draft_scan_read_failed", draft_id=entry.id, error=str(e))
            return None
        if document is None:
            return None  # Deleted after it was listed

        tags = make_tags(document)
        if tags != entry.tags:
            await self.tag(entry.id, document, event="draft_backfill_failed")
        return DraftSummary.from_tags(entry.id, tags)
