"""
Lineage resolution - "current" pointers and intent/problem expansion.
"""

from typing import Optional

from config import (
    INTENT_MARKER,
    INTENT_SITUATION,
    PROBE_SITUATIONS,
    PROBLEM_MARKER,
    PROBLEM_SITUATION,
)
from models import Answer, CycleSummary
from repositories import AnswerStore


class LineageResolver:
    """Derives current intent/problem/cycle and the answers linked to them."""

    def __init__(self, store: AnswerStore):
        self.store = store

    def current_intent_id(self) -> Optional[int]:
        """Newest intent answer. Yes/no answers never count."""
        return self.store.answers.latest_marked(INTENT_SITUATION, INTENT_MARKER)

    def current_problem_id(self) -> Optional[int]:
        return self.store.answers.latest_marked(PROBLEM_SITUATION, PROBLEM_MARKER)

    def current_cycle_id(self) -> Optional[int]:
        cycle = self.store.cycles.active()
        return cycle.id if cycle else None

    def expand(self, intent_id: int = None, problem_id: int = None, cycle_id: int = None) -> list[Answer]:
        """
        Answers linked to an intent or a problem, oldest first.

        With a cycle filter each candidate is re-checked against the cycle's
        per-situation answers, because the stored cycle column is unreliable
        for rows written before it existed.
        """
        if intent_id is not None:
            candidates = self.store.answers.by_intent(intent_id)
        elif problem_id is not None:
            candidates = self.store.answers.by_problem(problem_id)
        else:
            return []

        if cycle_id is None:
            return candidates

        members: dict[str, set[int]] = {}
        verified = []
        for answer in candidates:
            if answer.situation not in members:
                members[answer.situation] = {
                    a.id for a in self.store.answers.by_situation(answer.situation, cycle_id)
                }
            if answer.id in members[answer.situation]:
                verified.append(answer)
        return verified

    def in_cycle(self, answer: Answer, cycle_id: Optional[int]) -> bool:
        """Whether an answer belongs to a cycle (always true without one)."""
        if cycle_id is None:
            return True
        return any(a.id == answer.id for a in self.store.answers.by_situation(answer.situation, cycle_id))

    def previous_completed_cycle(self) -> Optional[CycleSummary]:
        return self.store.cycles.previous_completed()

    def effective_cycle_id(self, explicit: int = None) -> Optional[int]:
        """
        Cycle whose answers feed prompt context.

        A fresh active cycle that has nothing in the probe situations yet
        still sees the previous completed cycle.
        """
        if explicit is not None:
            return explicit

        active_id = self.current_cycle_id()
        if active_id is not None:
            for situation in PROBE_SITUATIONS:
                if self.store.answers.by_situation(situation, active_id):
                    return active_id

        previous = self.previous_completed_cycle()
        if previous is not None:
            return previous.cycle.id
        return active_id

    def summary(self) -> dict:
        """Relationship summary for display."""
        intent_id = self.current_intent_id()
        problem_id = self.current_problem_id()

        related = 0
        if intent_id is not None:
            related += len(self.store.answers.by_intent(intent_id))
        if problem_id is not None:
            related += len(self.store.answers.by_problem(problem_id))

        return {
            "has_intent": intent_id is not None,
            "has_problem": problem_id is not None,
            "intent_id": intent_id,
            "problem_id": problem_id,
            "related_count": related,
        }
