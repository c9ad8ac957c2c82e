from typing import Any

import structlog

from tmtickets.core.core import Service
from tmtickets.core.modules.reference.models import (
    JOB_NUMBER_COLUMNS,
    JOB_NUMBERS_PARTITION,
    TECHNICIANS_PARTITION,
    JobDetail,
    JobSummary,
    TechnicianSummary,
)
from tmtickets.errors import NotFoundError, ValidationError
from tmtickets.utils import as_text

logger = structlog.get_logger(__name__)

JOB_LIST_LIMIT = 50
TECHNICIAN_LIST_LIMIT = 100
ROW_KEY_MAX = "\uffff"


class ReferenceService(Service):
    """Read-only lookups over the reference collection."""

    async def get_partition(self, partition: str) -> list[dict[str, Any]]:
        """All entities of a partition, ordered by row key."""
        partition = as_text(partition)
        if not partition:
            raise ValidationError("Missing partition")
        return [entity async for entity in self.backend.reference.list_partition(partition)]

    async def list_job_numbers(self, prefix: str | None = None) -> list[JobSummary]:
        """Job numbers whose row key starts with ``prefix`` (upper-cased)."""
        low = as_text(prefix).upper()
        entities = self.backend.reference.list_row_key_range(
            JOB_NUMBERS_PARTITION, low, low + ROW_KEY_MAX, JOB_LIST_LIMIT
        )
        return [JobSummary.from_entity(entity) async for entity in entities]

    async def get_job_number(self, job_number: str) -> JobDetail:
        """Look a job up by row key or job number column, trying a few casings."""
        raw = as_text(job_number)
        if not raw:
            raise ValidationError("Missing jobNumber")

        for candidate in dict.fromkeys([raw, raw.upper(), raw.lower()]):
            entity = await self.backend.reference.find_one(JOB_NUMBERS_PARTITION, candidate, JOB_NUMBER_COLUMNS)
            if entity is not None:
                return JobDetail.from_entity(entity)

        logger.debug("job_number_not_found", job_number=raw)
        raise NotFoundError(f"Job number '{raw}' not found")

    async def list_technicians(self, prefix: str | None = None) -> list[TechnicianSummary]:
        """Technicians whose name starts with ``prefix`` (case-insensitive)."""
        # Names live in a non-key column, so the prefix filter runs here
        wanted = as_text(prefix).upper()
        items: list[TechnicianSummary] = []
        async for entity in self.backend.reference.list_partition(TECHNICIANS_PARTITION):
            technician = TechnicianSummary.from_entity(entity)
            if wanted and not technician.tech_name.upper().startswith(wanted):
                continue
            items.append(technician)
            if len(items) >= TECHNICIAN_LIST_LIMIT:
                break
        return items
