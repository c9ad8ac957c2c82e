"""Draft tickets and their index summaries."""

from pydantic import Field

from tmtickets.core.db import ApiModel


class DraftSummary(ApiModel):
    """Index view of a draft: what the tag index carries, without the body."""

    id: str = Field(..., description="Draft id (storage key)")
    job_number: str = Field(..., description="Job number the draft belongs to")
    job_name: str | None = Field(None, description="Job name, if the draft has one")
    date: str | None = Field(None, description="Ticket date as ISO-8601 text")

    @classmethod
    def from_tags(cls, draft_id: str, tags: dict[str, str]) -> "DraftSummary":
        return cls(
            id=draft_id,
            job_number=tags.get("jobNumber", ""),
            job_name=tags.get("jobName") or None,
            date=tags.get("date") or None,
        )


class SavedDraft(ApiModel):
    """Acknowledgement of a draft save."""

    id: str = Field(..., description="Draft id, generated when the request had none")
    saved_at: str = Field(..., description="Server timestamp of the save (ISO-8601, UTC)")


class DraftList(ApiModel):
    """Drafts of one job, newest ticket date first."""

    items: list[DraftSummary]
