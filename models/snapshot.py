"""
Snapshot and counter models.
"""

from typing import Optional
from pydantic import BaseModel

from .base import BaseEntity


class TransitionCounter(BaseEntity):
    """Consecutive-loop guard for one "<from>-><to>" transition."""
    transition_key: str
    count: int = 0
    last_reset_at: Optional[str] = None
    updated_at: Optional[str] = None

    @staticmethod
    def key_for(from_situation: str, to_situation: str) -> str:
        return f"{from_situation}->{to_situation}"


class Snapshot(BaseEntity):
    """Saved workflow state metadata (payload excluded)."""
    id: int
    situation: str
    saved_at: str
    description: Optional[str] = None
    answer_count: int = 0


class SnapshotDetails(BaseModel):
    """Snapshot metadata plus payload size, read without loading the payload."""
    snapshot: Snapshot
    answer_count: int
    payload_size: int
