from typing import Any

import structlog

from tmtickets.core.core import Service
from tmtickets.core.modules.draft.indexer import DraftIndexer
from tmtickets.core.modules.draft.models import DraftSummary, SavedDraft
from tmtickets.core.storage.base import StorageBackend
from tmtickets.errors import NotFoundError, ValidationError
from tmtickets.utils import as_text, is_draft_id, new_id, now_iso

logger = structlog.get_logger(__name__)


class DraftService(Service):
    """Saves, loads and lists draft tickets."""

    def __init__(self, backend: StorageBackend) -> None:
        super().__init__(backend)
        self._indexer: DraftIndexer | None = None

    @property
    def indexer(self) -> DraftIndexer:
        if self._indexer is None:
            config = self.core.config
            self._indexer = DraftIndexer(
                self.backend.drafts, list_limit=config.draft_list_limit, scan_limit=config.draft_scan_limit
            )
        return self._indexer

    async def save_draft(self, body: dict[str, Any] | None) -> SavedDraft:
        """Store the whole draft (replace-on-save), then tag it for job lookups.

        The id is taken from the body or generated. Tagging is best-effort: a
        draft that could not be tagged is still found through the fallback scan.
        """
        if not body:
            raise ValidationError("Missing request body")

        job_number = body.get("jobNumber")
        if isinstance(job_number, (dict, list, bool)) or not as_text(job_number):
            raise ValidationError("Missing jobNumber")

        draft_id = as_text(body.get("id")) or new_id()
        if not is_draft_id(draft_id):
            raise ValidationError(f"Invalid draft id '{draft_id}'")

        saved_at = now_iso()
        document = {**body, "id": draft_id, "jobNumber": as_text(job_number), "savedAt": saved_at}
        await self.backend.drafts.put(draft_id, document)
        await self.indexer.tag(draft_id, document)

        logger.info("draft_saved", draft_id=draft_id, job_number=document["jobNumber"])
        return SavedDraft(id=draft_id, saved_at=saved_at)

    async def get_draft(self, draft_id: str) -> dict[str, Any]:
        document = await self.backend.drafts.get(draft_id)
        if document is None:
            raise NotFoundError(f"Draft '{draft_id}' not found")
        return document

    async def delete_draft(self, draft_id: str) -> None:
        if not await self.backend.drafts.delete(draft_id):
            raise NotFoundError(f"Draft '{draft_id}' not found")
        logger.info("draft_deleted", draft_id=draft_id)

    async def list_drafts(self, job_number: str | None) -> list[DraftSummary]:
        """List drafts of a job, newest ticket date first."""
        job_number = as_text(job_number)
        if not job_number:
            raise ValidationError("Missing jobNumber")
        items = await self.indexer.list_by_job_number(job_number)
        logger.debug("list_drafts", job_number=job_number, count=len(items))
        return items
