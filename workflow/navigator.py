"""
Flow navigation - which question comes next.

The navigator holds the current situation and a history stack of visited
question ids. Every answer is saved before the next step is computed.
"""

from typing import Optional, Union

from config import (
    CYCLE_COMPLETE_NEXT_SITUATION,
    CYCLE_COMPLETE_QUESTION,
    CYCLE_START_SITUATION,
    GUARDED_FROM,
    GUARDED_TO,
    LIMIT_REACHED_QUESTION,
    OPTION_SITUATIONS,
    RETURN_TO_IMPLEMENTATION_QUESTION,
    TRANSITION_LIMIT,
    UNCONSCIOUS_SITUATION,
    WORKFLOW_SITUATIONS,
)
from models import NavigationOutcome, Question, QuestionType
from repositories import AnswerStore
from .catalog import FlowCatalog, load_catalog

AnswerInput = Union[str, bool, list]

_YES = {"true", "yes", "y"}
_NO = {"false", "no", "n"}


def _as_bool(answer) -> bool:
    if isinstance(answer, bool):
        return answer
    text = str(answer).strip().lower()
    if text in _YES:
        return True
    if text in _NO:
        return False
    raise ValueError(f"Expected a yes/no answer, got {answer!r}")


class FlowNavigator:
    """State machine over the question graph."""

    def __init__(self, store: AnswerStore, catalog: FlowCatalog = None):
        self.store = store
        self.catalog = catalog or load_catalog()
        self.situation: Optional[str] = None
        self._history: list[str] = []

    # === State ===

    @property
    def history(self) -> list[str]:
        return list(self._history)

    @property
    def current_question_id(self) -> Optional[str]:
        return self._history[-1] if self._history else None

    @property
    def current_question(self) -> Optional[Question]:
        if self.situation is None or not self._history:
            return None
        return self.catalog.question(self.situation, self._history[-1])

    @property
    def can_go_back(self) -> bool:
        return len(self._history) > 1

    def transition_count(self) -> int:
        """Consecutive Verifying -> Implementing returns so far."""
        return self.store.counters.get(GUARDED_FROM, GUARDED_TO)

    def state(self) -> dict:
        return {
            "situation": self.situation,
            "question_id": self.current_question_id,
            "history": self.history,
            "can_go_back": self.can_go_back,
            "transition_count": self.transition_count(),
            "transition_limit": TRANSITION_LIMIT,
        }

    # === Navigation ===

    def enter(self, situation: str, initial_question_id: str = None) -> str:
        """Switch to a situation. Returns the question shown first."""
        flow = self.catalog.require(situation)
        start = initial_question_id or flow.start_question_id
        if flow.get(start) is None:
            raise ValueError(f"Unknown question {start} in {situation}")

        self._switch(situation, start)
        return start

    def advance(self, question_id: str, answer: AnswerInput) -> Optional[NavigationOutcome]:
        """
        Save an answer and move on.

        Returns the outcome, or None when the flow has nowhere further to go.
        """
        if self.situation is None:
            raise ValueError("No situation entered")
        question = self.catalog.question(self.situation, question_id)
        if question is None:
            raise ValueError(f"Unknown question {question_id} in {self.situation}")

        value = self._save(question, answer)
        outcome = self._resolve(question, value)

        if outcome is None:
            return None
        if outcome.next_situation:
            self._switch(outcome.next_situation)
        else:
            self._history.append(outcome.next_question_id)
        return outcome

    def go_back(self) -> Optional[str]:
        """Pop one question. The situation's first question is never popped."""
        if not self.can_go_back:
            return None
        self._history.pop()
        return self._history[-1]

    # === Internals ===

    def _save(self, question: Question, answer: AnswerInput):
        """Persist the answer. Returns the value navigation is computed from."""
        if question.type == QuestionType.YESNO:
            value = _as_bool(answer)
            self.store.save_answer(question.id, self.situation, value)
            return value

        if isinstance(answer, (list, tuple)):
            if question.type != QuestionType.TEXT or not question.allow_multiple:
                raise ValueError(f"{question.id} takes a single answer")
            entries = [str(entry).strip() for entry in answer if str(entry).strip()]
            if not entries:
                raise ValueError(f"{question.id} needs at least one non-empty answer")
            for entry in entries:
                self.store.save_answer(question.id, self.situation, entry)
            return entries[-1]

        value = str(answer).strip()
        if not value:
            raise ValueError(f"{question.id} needs a non-empty answer")
        if question.type == QuestionType.MULTIPLE and question.options and value not in question.options:
            raise ValueError(f"{value!r} is not an option of {question.id}")

        self.store.save_answer(question.id, self.situation, value)
        return value

    def _resolve(self, question: Question, value) -> Optional[NavigationOutcome]:
        if question.id == RETURN_TO_IMPLEMENTATION_QUESTION and value is True:
            count = self.store.counters.get(GUARDED_FROM, GUARDED_TO)
            if count >= TRANSITION_LIMIT:
                print(f"[Navigator] {GUARDED_FROM} -> {GUARDED_TO} blocked after {count} consecutive returns")
                return NavigationOutcome(next_question_id=LIMIT_REACHED_QUESTION, limit_reached=True)
            self.store.counters.increment(GUARDED_FROM, GUARDED_TO)
            return NavigationOutcome(next_situation=GUARDED_TO)

        if question.id == CYCLE_COMPLETE_QUESTION and value is True:
            active = self.store.cycles.active()
            if active is not None:
                self.store.cycles.complete(active.id)
            return NavigationOutcome(next_situation=CYCLE_COMPLETE_NEXT_SITUATION)

        if question.type == QuestionType.YESNO:
            if value and question.on_yes_next_question_id:
                return NavigationOutcome(next_question_id=question.on_yes_next_question_id)
            if value and question.on_yes_next_situation:
                return NavigationOutcome(next_situation=question.on_yes_next_situation)
            if not value and question.on_no_next_question_id:
                return NavigationOutcome(next_question_id=question.on_no_next_question_id)
            if not value and question.on_no_next_situation:
                return NavigationOutcome(next_situation=question.on_no_next_situation)
            return None

        if question.type == QuestionType.MULTIPLE:
            target = OPTION_SITUATIONS.get(value)
            if target is None and value in WORKFLOW_SITUATIONS:
                target = value
            if target is not None:
                return NavigationOutcome(next_situation=target)

        if question.on_answer_next_situation:
            return NavigationOutcome(next_situation=question.on_answer_next_situation)
        if question.next_question_id:
            return NavigationOutcome(next_question_id=question.next_question_id)
        if question.next_situation:
            return NavigationOutcome(next_situation=question.next_situation)
        return None

    def _switch(self, situation: str, start: str = None) -> None:
        """Change situation: guard reset, cycle side effects, fresh history."""
        previous = self.situation

        if previous is not None and previous != situation:
            if (previous == GUARDED_FROM and situation != GUARDED_TO) or (
                previous == GUARDED_TO and situation != GUARDED_FROM
            ):
                self.store.counters.reset(GUARDED_FROM, GUARDED_TO)

            if previous == UNCONSCIOUS_SITUATION:
                active = self.store.cycles.active()
                if active is not None:
                    self.store.cycles.record_unconscious_exit(active.id)

        if previous != situation:
            if situation == CYCLE_START_SITUATION and self.store.cycles.active() is None:
                self.store.cycles.create()
            elif situation == UNCONSCIOUS_SITUATION:
                active = self.store.cycles.active()
                if active is not None:
                    self.store.cycles.record_unconscious_entry(active.id)

        if start is None:
            flow = self.catalog.flow(situation)
            start = flow.start_question_id if flow else None

        self.situation = situation
        self._history = [start] if start else []
