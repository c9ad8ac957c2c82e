from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from tmtickets.config import Config
from tmtickets.core.core import Core
from tmtickets.core.modules.draft.models import DraftSummary, SavedDraft
from tmtickets.core.modules.reference.models import JobDetail, JobSummary, TechnicianSummary
from tmtickets.core.storage.base import StorageBackend


class App:
    """Facade for all application operations, delegating to Core services."""

    def __init__(self, config: Config, backend: StorageBackend | None = None) -> None:
        self._core = Core(config, backend)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Tickets ===
    async def next_ticket_number(self) -> str:
        """Allocate the next ticket number."""
        return await self._core.services.counter.allocate_next()

    # === Drafts ===
    async def save_draft(self, body: dict[str, Any] | None) -> SavedDraft:
        return await self._core.services.draft.save_draft(body)

    async def get_draft(self, draft_id: str) -> dict[str, Any]:
        return await self._core.services.draft.get_draft(draft_id)

    async def delete_draft(self, draft_id: str) -> None:
        await self._core.services.draft.delete_draft(draft_id)

    async def list_drafts(self, job_number: str | None) -> list[DraftSummary]:
        """List drafts of a job (tag index first, scan fallback)."""
        return await self._core.services.draft.list_drafts(job_number)

    # === Reference data ===
    async def get_reference_partition(self, partition: str) -> list[dict[str, Any]]:
        return await self._core.services.reference.get_partition(partition)

    async def list_job_numbers(self, prefix: str | None) -> list[JobSummary]:
        return await self._core.services.reference.list_job_numbers(prefix)

    async def get_job_number(self, job_number: str) -> JobDetail:
        return await self._core.services.reference.get_job_number(job_number)

    async def list_technicians(self, prefix: str | None) -> list[TechnicianSummary]:
        return await self._core.services.reference.list_technicians(prefix)
