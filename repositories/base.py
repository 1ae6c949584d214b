"""
Repository base classes - define the interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from models import (
    Answer,
    Cycle,
    CyclePick,
    CycleSummary,
    LinkOverrides,
    Snapshot,
    SnapshotDetails,
    TransitionCounter,
    UnconsciousPeriod,
)


class AnswerRepository(ABC):
    """Repository for recorded answers."""

    @abstractmethod
    def get(self, id: int) -> Optional[Answer]:
        """Get answer by ID."""
        pass

    @abstractmethod
    def latest_by_question(self, question_id: str) -> Optional[Answer]:
        """Most recent answer to a question."""
        pass

    @abstractmethod
    def by_question(self, question_id: str) -> list[Answer]:
        """All answers to a question, newest first."""
        pass

    @abstractmethod
    def by_question_in_cycle(self, question_id: str, cycle_id: int) -> list[Answer]:
        """Answers to a question inside one cycle, oldest first."""
        pass

    @abstractmethod
    def by_situation(self, situation: str, cycle_id: int = None, ascending: bool = False) -> list[Answer]:
        """Answers recorded in a situation, optionally restricted to one cycle."""
        pass

    @abstractmethod
    def by_intent(self, intent_id: int) -> list[Answer]:
        pass

    @abstractmethod
    def by_problem(self, problem_id: int) -> list[Answer]:
        pass

    @abstractmethod
    def by_cycle(self, cycle_id: int) -> list[Answer]:
        """Full cycle dump, oldest first."""
        pass

    @abstractmethod
    def latest_marked(self, situation: str, marker: str) -> Optional[int]:
        """Id of the newest text answer in a situation whose question id contains marker."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class CycleRepository(ABC):
    """Repository for workflow cycles."""

    @abstractmethod
    def create(self) -> Cycle:
        """Start a new cycle with the next sequential number."""
        pass

    @abstractmethod
    def complete(self, id: int) -> Cycle:
        pass

    @abstractmethod
    def activate(self, id: int) -> Cycle:
        """Make a cycle the single active one."""
        pass

    @abstractmethod
    def get(self, id: int) -> Optional[Cycle]:
        pass

    @abstractmethod
    def active(self) -> Optional[Cycle]:
        pass

    @abstractmethod
    def previous_completed(self) -> Optional[CycleSummary]:
        """Highest-numbered completed cycle with its answers."""
        pass

    @abstractmethod
    def previous_cycles_answers(self, exclude_cycle_id: int = None) -> list[CycleSummary]:
        pass

    @abstractmethod
    def record_unconscious_entry(self, id: int) -> Cycle:
        pass

    @abstractmethod
    def record_unconscious_exit(self, id: int) -> Cycle:
        pass

    @abstractmethod
    def unconscious_periods(self) -> list[UnconsciousPeriod]:
        pass

    # Defined last: the name shadows the builtin for annotations below it.
    @abstractmethod
    def list(self) -> list[Cycle]:
        """All cycles, newest first."""
        pass


class CounterRepository(ABC):
    """Repository for transition guard counters."""

    @abstractmethod
    def get(self, from_situation: str, to_situation: str) -> int:
        pass

    @abstractmethod
    def get_record(self, from_situation: str, to_situation: str) -> Optional[TransitionCounter]:
        pass

    @abstractmethod
    def increment(self, from_situation: str, to_situation: str) -> int:
        """Add one. Returns the new count."""
        pass

    @abstractmethod
    def reset(self, from_situation: str, to_situation: str) -> None:
        pass


class SnapshotRepository(ABC):
    """Repository for saved workflow states."""

    @abstractmethod
    def save(self, situation: str, description: str = None) -> int:
        pass

    @abstractmethod
    def restore(self, id: int) -> str:
        """Replace every answer with the snapshot's. Returns its situation."""
        pass

    @abstractmethod
    def list(self) -> list[Snapshot]:
        pass

    @abstractmethod
    def delete(self, id: int) -> bool:
        pass

    @abstractmethod
    def details(self, id: int) -> Optional[SnapshotDetails]:
        pass


class PickRepository(ABC):
    """Repository for cross-cycle context picks."""

    @abstractmethod
    def add(self, target_cycle_id: int, source_answer: Answer) -> int:
        """Pin an answer. Re-adding the same answer returns the existing pick."""
        pass

    @abstractmethod
    def remove(self, id: int) -> bool:
        pass

    @abstractmethod
    def for_cycle(self, cycle_id: int) -> list[CyclePick]:
        pass


class Repository(ABC):
    """
    Aggregate repository - provides access to all entity repositories.

    This is what consumers use. Backend implementations provide
    concrete versions of each sub-repository.
    """

    @property
    @abstractmethod
    def answers(self) -> AnswerRepository:
        pass

    @property
    @abstractmethod
    def cycles(self) -> CycleRepository:
        pass

    @property
    @abstractmethod
    def counters(self) -> CounterRepository:
        pass

    @property
    @abstractmethod
    def snapshots(self) -> SnapshotRepository:
        pass

    @property
    @abstractmethod
    def picks(self) -> PickRepository:
        pass

    @abstractmethod
    def initialize(self) -> None:
        """Load persisted data and bring the schema up to date. Idempotent."""
        pass

    @abstractmethod
    def save_answer(
        self,
        question_id: str,
        situation: str,
        value,
        answered_at: str = None,
        overrides: LinkOverrides = None,
    ) -> int:
        """Record an answer with resolved lineage. Returns its id."""
        pass
