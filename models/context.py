"""
Related-context model - lineage groups gathered for prompt building.
"""

from typing import Optional
from pydantic import BaseModel, Field


class RelatedContext(BaseModel):
    """Answers grouped by their role in the current intent's lineage."""
    intent: Optional[str] = None
    problems: list[str] = Field(default_factory=list)
    design: list[str] = Field(default_factory=list)
    acceptance: list[str] = Field(default_factory=list)
    implementation: list[str] = Field(default_factory=list)
    feedback: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    # question_id -> latest text, across intent, problem and current situation
    all_related: dict[str, str] = Field(default_factory=dict)
