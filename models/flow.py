"""
Flow catalog models - the static question graph and navigation results.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class QuestionType(str, Enum):
    TEXT = "text"
    YESNO = "yesno"
    MULTIPLE = "multiple"


class DataSource(str, Enum):
    """Where a question's read-only display data comes from."""
    INTENT_SUMMARY = "intent_summary"
    ANSWERS_FOR_QUESTION = "answers_for_question"
    PREVIOUS_CYCLE = "previous_cycle"


class DataDisplay(BaseModel):
    """Read-only data shown alongside a question."""
    label: str
    source: DataSource
    source_param: Optional[str] = None


class PromptTemplate(BaseModel):
    """AI prompt template with {{key}} placeholders."""
    template: str
    variables: list[str] = Field(default_factory=list)


class Question(BaseModel):
    """
    A node of the question graph.

    Branch fields are all optional; which ones apply depends on the type.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    question: str
    type: QuestionType = QuestionType.TEXT
    required: bool = True
    options: list[str] = Field(default_factory=list)
    allow_multiple: bool = True  # text questions only

    # Text / multiple-choice branches
    next_question_id: Optional[str] = None
    next_situation: Optional[str] = None
    on_answer_next_situation: Optional[str] = None

    # Yes/no branches
    on_yes_next_question_id: Optional[str] = None
    on_yes_next_situation: Optional[str] = None
    on_no_next_question_id: Optional[str] = None
    on_no_next_situation: Optional[str] = None

    show_data: Optional[DataDisplay] = None
    prompt_template: Optional[PromptTemplate] = None


class SituationFlow(BaseModel):
    """Ordered questions for one situation."""
    situation: str
    start_question_id: str
    description: str = ""
    questions: list[Question] = Field(default_factory=list)

    def get(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def position(self, question_id: str) -> int:
        """1-based position of a question, 0 if absent."""
        for i, q in enumerate(self.questions, 1):
            if q.id == question_id:
                return i
        return 0


class NavigationOutcome(BaseModel):
    """
    Result of one answer submission.

    Exactly one of next_question_id / next_situation is set. A flow that
    simply ends is reported as None by the navigator, not as an outcome.
    """
    next_question_id: Optional[str] = None
    next_situation: Optional[str] = None
    limit_reached: bool = False

    @property
    def changes_situation(self) -> bool:
        return self.next_situation is not None
