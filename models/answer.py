"""
Answer models - one recorded response and its lineage links.
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .base import BaseEntity


class Answer(BaseEntity):
    """
    A single recorded response.

    This is the atomic unit of the store. intent_id / problem_id / parent_id
    point at other answers and form the lineage graph.
    """
    id: int
    question_id: str
    situation: str
    value: str = Field(validation_alias=AliasChoices("value", "answer"))
    answered_at: str

    # Lineage
    intent_id: Optional[int] = None
    problem_id: Optional[int] = None
    parent_id: Optional[int] = None
    cycle_id: Optional[int] = None

    @property
    def is_boolean(self) -> bool:
        """Yes/no answers carry control flow only, never prose."""
        return self.value in ("true", "false")

    @property
    def answer(self) -> str:
        """Alias for compatibility with the stored column name."""
        return self.value


class LinkOverrides(BaseModel):
    """
    Explicit lineage for save_answer.

    Only fields that were actually set override the resolved defaults, so
    LinkOverrides(intent_id=None) means "force no intent", while
    LinkOverrides() overrides nothing.
    """
    model_config = ConfigDict(extra="forbid")

    intent_id: Optional[int] = None
    problem_id: Optional[int] = None
    parent_id: Optional[int] = None
    cycle_id: Optional[int] = None

    def explicit(self) -> dict:
        """Fields the caller set, with their values."""
        return {name: getattr(self, name) for name in self.model_fields_set}
