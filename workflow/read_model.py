"""
Read model - workflow state derived from recorded answers.
"""

from typing import Optional

from pydantic import BaseModel

from config import INTENT_MARKER, INTENT_SITUATION, WORKFLOW_SITUATIONS
from models import DataSource, Question
from repositories import AnswerStore
from .prompt import format_cycle_markdown


class StateHistoryEntry(BaseModel):
    state: str
    timestamp: str
    question_id: str
    answer: str


class WorkflowReadModel:
    """Read-only queries over the answer store."""

    def __init__(self, store: AnswerStore, situations: list[str] = None):
        self.store = store
        self.situations = list(situations or WORKFLOW_SITUATIONS)

    def current_state(self) -> Optional[str]:
        """Latest situation (in workflow order) that has any answer."""
        for situation in reversed(self.situations):
            if self.store.answers.by_situation(situation):
                return situation
        return None

    def state_history(self) -> list[StateHistoryEntry]:
        """Every answer as a history entry, oldest first."""
        history = []
        for situation in self.situations:
            history.extend(self.state_history_for(situation))
        return sorted(history, key=lambda e: e.timestamp)

    def state_history_for(self, situation: str) -> list[StateHistoryEntry]:
        return [
            StateHistoryEntry(
                state=situation,
                timestamp=a.answered_at,
                question_id=a.question_id,
                answer=a.value,
            )
            for a in self.store.answers.by_situation(situation)
        ]

    def intent_summary(self) -> Optional[str]:
        """Text of the newest intent answer."""
        for answer in self.store.answers.by_situation(INTENT_SITUATION):
            if INTENT_MARKER in answer.question_id and not answer.is_boolean:
                return answer.value
        return None

    def display_data(self, question: Question):
        """Data a question shows alongside itself, per its show_data source."""
        display = question.show_data
        if display is None:
            return None

        if display.source == DataSource.INTENT_SUMMARY:
            return self.intent_summary()

        if display.source == DataSource.ANSWERS_FOR_QUESTION:
            if not display.source_param:
                return []
            return [a.value for a in self.store.answers.by_question(display.source_param) if not a.is_boolean]

        if display.source == DataSource.PREVIOUS_CYCLE:
            previous = self.store.cycles.previous_completed()
            return format_cycle_markdown(previous) if previous else None

        return None
