"""
Prompt context aggregation.

build() produces one flat key -> text mapping by running fixed passes in
order. Later passes overwrite earlier ones unless noted:

    1. effective cycle     explicit, else active, else previous completed
    2. lineage             intent, relatedProblems, design, ... relatedContext
    3. aggregation         every answer per question id (overwrites 2)
    4. fill-if-absent      intent/problem/design/acceptanceCriteria by question id
    5. narrowing           problem + acceptanceCriteria for the selected problem
    6. selectedContext     picks on the active cycle

Yes/no answers are control flow, never prose: no pass uses them.
"""

from typing import Optional

from config import (
    ACCEPTANCE_SITUATION,
    INTENT_MARKER,
    INTENT_SITUATION,
    PROBLEM_MARKER,
    PROBLEM_SITUATION,
    WORKFLOW_SITUATIONS,
)
from models import Answer, RelatedContext
from repositories import AnswerStore
from .lineage import LineageResolver
from .prompt import format_related_context

# Lineage groups: (field, situation, required question-id fragment)
LINEAGE_GROUPS = [
    ("problems", PROBLEM_SITUATION, PROBLEM_MARKER),
    ("design", "Designing", None),
    ("acceptance", ACCEPTANCE_SITUATION, None),
    ("implementation", "Implementing", None),
    ("feedback", "CollectingFeedback", None),
    ("improvements", "Learning", "improvements"),
]

# Standard keys filled from question ids when nothing set them yet
FILL_KEYS = [
    ("intent", ("intent",)),
    ("problem", ("problem",)),
    ("design", ("design",)),
    ("acceptanceCriteria", ("acceptance", "criteria")),
]


def _join(values) -> str:
    return "\n\n".join(values)


def _numbered(values: list[str]) -> str:
    if len(values) == 1:
        return values[0]
    return _join(f"{i}. {value}" for i, value in enumerate(values, 1))


class ContextAggregator:
    """Builds the prompt context for a situation."""

    def __init__(self, store: AnswerStore, situations: list[str] = None):
        self.store = store
        self.lineage = LineageResolver(store)
        self.situations = list(situations or WORKFLOW_SITUATIONS)

    def build(self, situation: str, problem_id: int = None, cycle_id: int = None) -> dict[str, str]:
        context: dict[str, str] = {}

        effective = self.lineage.effective_cycle_id(cycle_id)
        selected = self._selected_problem(problem_id)

        self._lineage_pass(context, situation, effective)
        answers = self._aggregation_pass(context, situation, effective)
        self._fill_pass(context, answers, problem_selected=selected is not None)
        self._narrowing_pass(context, selected, effective)
        self._selected_context_pass(context)

        return context

    # === Passes ===

    def related(self, situation: str, cycle_id: Optional[int]) -> RelatedContext:
        """Lineage groups for the current intent and problem, scoped to a cycle."""
        related = RelatedContext()

        intent_id = self.lineage.current_intent_id()
        if intent_id is not None:
            # The intent answer is the root of its lineage, not linked to itself
            root = self.store.answers.get(intent_id)
            if root is not None and self.lineage.in_cycle(root, cycle_id):
                related.intent = root.value
                related.all_related["intent"] = root.value

            linked = [a for a in self.lineage.expand(intent_id=intent_id, cycle_id=cycle_id) if not a.is_boolean]
            for field, group_situation, fragment in LINEAGE_GROUPS:
                values = [
                    a.value
                    for a in linked
                    if a.situation == group_situation and (fragment is None or fragment in a.question_id)
                ]
                setattr(related, field, values)

            if related.intent is None:
                intents = [
                    a for a in linked
                    if a.situation == INTENT_SITUATION and INTENT_MARKER in a.question_id
                ]
                if intents:
                    related.intent = intents[0].value

            for a in linked:
                related.all_related[a.question_id] = a.value

        problem_id = self.lineage.current_problem_id()
        if problem_id is not None:
            for a in self.lineage.expand(problem_id=problem_id, cycle_id=cycle_id):
                if not a.is_boolean:
                    related.all_related[a.question_id] = a.value

        for a in self.store.answers.by_situation(situation, cycle_id, ascending=True):
            if not a.is_boolean:
                related.all_related[a.question_id] = a.value

        return related

    def _lineage_pass(self, context: dict, situation: str, cycle_id: Optional[int]) -> None:
        related = self.related(situation, cycle_id)

        if related.intent:
            context["intent"] = related.intent
        if related.problems:
            context["relatedProblems"] = _join(related.problems)
        if related.design:
            context["design"] = _join(related.design)
        if related.acceptance:
            context["acceptanceCriteria"] = _join(related.acceptance)
        if related.implementation:
            context["implementation"] = _join(related.implementation)
        if related.feedback:
            context["feedback"] = _join(related.feedback)
        if related.improvements:
            context["improvements"] = _join(related.improvements)

        context["relatedContext"] = format_related_context(related)

        for key, value in related.all_related.items():
            if not context.get(key):
                context[key] = value

    def _aggregation_pass(self, context: dict, situation: str, cycle_id: Optional[int]) -> list[Answer]:
        situations = list(dict.fromkeys(self.situations + [situation]))

        answers = []
        for name in situations:
            answers.extend(
                a for a in self.store.answers.by_situation(name, cycle_id, ascending=True)
                if not a.is_boolean
            )
        answers.sort(key=lambda a: (a.answered_at, a.id))

        grouped: dict[str, list[str]] = {}
        for a in answers:
            grouped.setdefault(a.question_id, []).append(a.value)

        for question_id, values in grouped.items():
            context[question_id] = _numbered(values)

        return answers

    def _fill_pass(self, context: dict, answers: list[Answer], problem_selected: bool) -> None:
        for key, fragments in FILL_KEYS:
            if context.get(key):
                continue
            if problem_selected and key in ("problem", "acceptanceCriteria"):
                continue

            matches = [a.value for a in answers if any(f in a.question_id for f in fragments)]
            if not matches:
                continue

            if key == "acceptanceCriteria":
                context[key] = _join(matches)
            else:
                context[key] = matches[-1]

    def _selected_problem(self, problem_id: Optional[int]) -> Optional[int]:
        """Id of the problem statement to narrow to, if the selection names one."""
        if problem_id is None:
            return self.lineage.current_problem_id()

        answer = self.store.answers.get(problem_id)
        if answer is None or answer.is_boolean:
            return None
        if answer.situation != PROBLEM_SITUATION or PROBLEM_MARKER not in answer.question_id:
            print(f"[WARN] Answer {problem_id} is not a problem statement, not narrowing")
            return None
        return problem_id

    def _narrowing_pass(self, context: dict, selected: Optional[int], cycle_id: Optional[int]) -> None:
        if selected is None:
            return

        context["problem"] = self.store.answers.get(selected).value

        criteria = [
            a.value
            for a in self.store.answers.by_situation(ACCEPTANCE_SITUATION, ascending=True)
            if a.problem_id == selected and not a.is_boolean
        ]
        if not criteria:
            criteria = [
                a.value
                for a in self.store.answers.by_situation(ACCEPTANCE_SITUATION, cycle_id, ascending=True)
                if not a.is_boolean
            ]
        if criteria:
            context["acceptanceCriteria"] = _join(criteria)

    def _selected_context_pass(self, context: dict) -> None:
        active_id = self.lineage.current_cycle_id()
        picks = self.store.picks.for_cycle(active_id) if active_id is not None else []
        context["selectedContext"] = _join(pick.as_context_block() for pick in picks)


def build_prompt_context(store: AnswerStore, situation: str, problem_id: int = None, cycle_id: int = None) -> dict[str, str]:
    """Flat key -> text mapping for prompt templates."""
    return ContextAggregator(store).build(situation, problem_id=problem_id, cycle_id=cycle_id)
