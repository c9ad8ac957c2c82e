from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

DEFAULT_COLLECTIONS = {
    "counters_collection": "counters",
    "drafts_collection": "tickets-draft",
    "reference_collection": "reference",
}


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    storage_backend: Literal["mongo", "memory"] = "mongo"
    database_url: str = "mongodb://localhost:27017/tmtickets"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []

    ticket_number_prefix: str = "T-"
    ticket_number_start: int = 1000
    ticket_number_max_attempts: int = Field(5, ge=1, le=20)
    ticket_number_backoff: float = Field(0.05, ge=0)  # Seconds; multiplied by the attempt number

    counters_collection: str = DEFAULT_COLLECTIONS["counters_collection"]
    drafts_collection: str = DEFAULT_COLLECTIONS["drafts_collection"]
    reference_collection: str = DEFAULT_COLLECTIONS["reference_collection"]

    tag_index_enabled: bool = True  # Without the tag index every listing falls back to a full scan
    draft_list_limit: int = Field(500, ge=1, le=1000)
    draft_scan_limit: int = Field(5000, ge=1, le=50000)

    model_config = {
        "env_file": [".env"],
        "env_prefix": "TMTICKETS_",
        "extra": "ignore",
    }

    @field_validator("counters_collection", "drafts_collection", "reference_collection", mode="before")
    @classmethod
    def _fallback_blank_collection(cls, value: Any, info: ValidationInfo) -> Any:
        """Blank collection names fall back to their defaults."""
        if isinstance(value, str) and not value.strip():
            return DEFAULT_COLLECTIONS[str(info.field_name)]
        return value.strip() if isinstance(value, str) else value
