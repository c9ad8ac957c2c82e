import re
from datetime import UTC, datetime
from uuid import uuid4

DRAFT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def is_draft_id(value: str) -> bool:
    return bool(DRAFT_ID_RE.fullmatch(value))


def now() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid4())


def as_text(value: object) -> str:
    """Stringify a loosely typed payload value; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()
