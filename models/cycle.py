"""
Cycle models - workflow iterations, their answers, and cross-cycle picks.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .base import BaseEntity
from .answer import Answer


class CycleStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Cycle(BaseEntity):
    """One end-to-end pass through the workflow."""
    id: int
    cycle_number: int
    started_at: str
    completed_at: Optional[str] = None
    status: CycleStatus = CycleStatus.ACTIVE

    # Dormant ("Unconscious") period inside this cycle
    unconscious_entered_at: Optional[str] = None
    unconscious_exited_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == CycleStatus.ACTIVE


class CycleSummary(BaseModel):
    """A cycle together with its full answer dump (ascending)."""
    cycle: Cycle
    answers: list[Answer] = Field(default_factory=list)

    @property
    def text_answers(self) -> list[Answer]:
        return [a for a in self.answers if not a.is_boolean]


class CyclePick(BaseEntity):
    """An answer from an earlier cycle, pinned into the active cycle's context."""
    id: int
    target_cycle_id: int
    source_cycle_id: Optional[int] = None
    source_answer_id: int
    question_id: str
    answer_text: str
    situation: str
    added_at: Optional[str] = None

    def as_context_block(self) -> str:
        return f"[{self.situation}] {self.answer_text}"


class UnconsciousPeriod(BaseModel):
    """A recorded dormant period, for statistics."""
    cycle_id: int
    cycle_number: int
    entered_at: str
    exited_at: Optional[str] = None
