"""
Domain models - single source of truth for all entities.

Design principles:
- Every entity defined once
- Validation at the boundary
- Backend-agnostic (repository handles persistence)
"""

from .base import BaseEntity, utc_now, normalize_timestamp, to_answer_text
from .answer import Answer, LinkOverrides
from .cycle import Cycle, CycleStatus, CycleSummary, CyclePick, UnconsciousPeriod
from .snapshot import TransitionCounter, Snapshot, SnapshotDetails
from .context import RelatedContext
from .flow import (
    QuestionType,
    DataSource,
    DataDisplay,
    PromptTemplate,
    Question,
    SituationFlow,
    NavigationOutcome,
)

__all__ = [
    # Base
    "BaseEntity",
    "utc_now",
    "normalize_timestamp",
    "to_answer_text",
    # Answer
    "Answer",
    "LinkOverrides",
    # Cycle
    "Cycle",
    "CycleStatus",
    "CycleSummary",
    "CyclePick",
    "UnconsciousPeriod",
    # Snapshot / counters
    "TransitionCounter",
    "Snapshot",
    "SnapshotDetails",
    # Context
    "RelatedContext",
    # Flow
    "QuestionType",
    "DataSource",
    "DataDisplay",
    "PromptTemplate",
    "Question",
    "SituationFlow",
    "NavigationOutcome",
]
