"""
Base entity classes and timestamp helpers.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def normalize_timestamp(value: str) -> str:
    """Rewrite an ISO-8601 string (e.g. one ending in "Z") in the utc_now format."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat(timespec="microseconds")


def to_answer_text(value) -> str:
    """Serialize an answer value. Booleans become "true"/"false"."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BaseEntity(BaseModel):
    """
    Base for all persistent entities.

    Rows come straight from the store; unknown columns (from newer schemas)
    are ignored rather than rejected.
    """
    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        from_attributes=True,
    )

    @classmethod
    def from_row(cls, row):
        """Build from a SQLAlchemy row mapping."""
        return cls.model_validate(dict(row._mapping))
