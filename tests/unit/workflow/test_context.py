"""
Unit tests for prompt context aggregation.

One class per merge pass, plus the end-to-end examples.
"""

from workflow import ContextAggregator, build_prompt_context


def _intent(store, text="Reduce churn"):
    return store.save_answer("intent-summary-text", "DefiningIntent", text)


def _problem(store, text):
    return store.save_answer("problem-boundaries-text", "SelectingProblem", text)


class TestPreviousCycleFallback:
    def test_empty_active_cycle_sees_previous(self, store):
        store.cycles.create()
        _intent(store)
        store.cycles.create()  # completes #1

        context = build_prompt_context(store, "SelectingProblem")

        assert context["intent"] == "Reduce churn"
        assert context["selectedContext"] == ""

    def test_active_cycle_with_data_is_used(self, store):
        store.cycles.create()
        store.save_answer("dump-thoughts-text", "Dumping", "old thought")
        store.cycles.create()
        store.save_answer("dump-thoughts-text", "Dumping", "new thought")

        context = build_prompt_context(store, "DefiningIntent")

        assert context["dump-thoughts-text"] == "new thought"

    def test_explicit_cycle_wins(self, store):
        first = store.cycles.create()
        store.save_answer("dump-thoughts-text", "Dumping", "old thought")
        store.cycles.create()
        store.save_answer("dump-thoughts-text", "Dumping", "new thought")

        context = build_prompt_context(store, "DefiningIntent", cycle_id=first.id)

        assert context["dump-thoughts-text"] == "old thought"


class TestLineagePass:
    def test_groups_from_intent(self, store):
        _intent(store)
        _problem(store, "Checkout is slow")
        store.save_answer("design-approach-text", "Designing", "Cache the cart")

        context = build_prompt_context(store, "Designing")

        assert context["intent"] == "Reduce churn"
        assert context["relatedProblems"] == "Checkout is slow"
        assert context["design"] == "Cache the cart"
        assert "## Intent\nReduce churn" in context["relatedContext"]
        assert "## Related Problems\n1. Checkout is slow" in context["relatedContext"]

    def test_related_model(self, store):
        _intent(store)
        store.save_answer("intent-clear", "DefiningIntent", True)
        _problem(store, "Checkout is slow")
        store.save_answer("feedback-text", "CollectingFeedback", "Faster now")

        related = ContextAggregator(store).related("Learning", None)

        assert related.intent == "Reduce churn"
        assert related.problems == ["Checkout is slow"]
        assert related.feedback == ["Faster now"]
        assert "intent-clear" not in related.all_related

    def test_no_intent_leaves_related_context_empty(self, store):
        context = build_prompt_context(store, "Designing")
        assert context["relatedContext"] == ""


class TestAggregationPass:
    def test_multi_entry_numbered_in_order(self, store):
        store.cycles.create()
        for thought in ("first", "second", "third"):
            store.save_answer("dump-thoughts-text", "Dumping", thought)

        context = build_prompt_context(store, "DefiningIntent")

        assert context["dump-thoughts-text"] == "1. first\n\n2. second\n\n3. third"

    def test_booleans_never_aggregated(self, store):
        store.save_answer("dump-ready", "Dumping", True)
        context = build_prompt_context(store, "WhatToDo")
        assert "dump-ready" not in context


class TestFillPass:
    def test_latest_design_fills_standard_key(self, store):
        store.save_answer("design-approach-text", "Designing", "Draft one")
        store.save_answer("design-approach-text", "Designing", "Draft two")

        context = build_prompt_context(store, "BreakingTasks")

        assert context["design-approach-text"] == "1. Draft one\n\n2. Draft two"
        assert context["design"] == "Draft two"

    def test_acceptance_matches_joined(self, store):
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "p95 < 1s")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "No errors")

        context = build_prompt_context(store, "Designing")

        assert context["acceptanceCriteria"] == "p95 < 1s\n\nNo errors"


class TestNarrowingPass:
    def test_selected_problem_narrows_criteria(self, store):
        first = _problem(store, "Checkout is slow")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "p95 < 1s")
        _problem(store, "Search is wrong")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "Top hit relevant")

        context = build_prompt_context(store, "Designing", problem_id=first)

        assert context["problem"] == "Checkout is slow"
        assert context["acceptanceCriteria"] == "p95 < 1s"

    def test_current_problem_by_default(self, store):
        _problem(store, "Checkout is slow")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "p95 < 1s")
        _problem(store, "Search is wrong")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "Top hit relevant")

        context = build_prompt_context(store, "Designing")

        assert context["problem"] == "Search is wrong"
        assert context["acceptanceCriteria"] == "Top hit relevant"

    def test_problem_without_criteria_falls_back(self, store):
        _problem(store, "Checkout is slow")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "p95 < 1s")
        _problem(store, "Search is wrong")

        context = build_prompt_context(store, "Designing")

        assert context["problem"] == "Search is wrong"
        assert context["acceptanceCriteria"] == "p95 < 1s"

    def test_selection_must_be_problem_statement(self, store):
        intent = _intent(store)
        _problem(store, "Checkout is slow")
        store.save_answer("acceptance-criteria-text", "DefiningAcceptance", "p95 < 1s")

        context = build_prompt_context(store, "Designing", problem_id=intent)

        assert context["problem"] == "Checkout is slow"
        assert context["acceptanceCriteria"] == "p95 < 1s"
        assert context["intent"] == "Reduce churn"

    def test_unknown_selection_is_ignored(self, store):
        _problem(store, "Checkout is slow")

        context = build_prompt_context(store, "Designing", problem_id=999)

        assert context["problem"] == "Checkout is slow"


class TestSelectedContextPass:
    def test_picks_on_active_cycle(self, store):
        store.cycles.create()
        feedback = store.save_answer("feedback-text", "CollectingFeedback", "Users want export")
        second = store.cycles.create()
        store.picks.add(second.id, store.answers.get(feedback))

        context = build_prompt_context(store, "DefiningIntent")

        assert context["selectedContext"] == "[CollectingFeedback] Users want export"

    def test_no_active_cycle(self, store):
        assert build_prompt_context(store, "Dumping")["selectedContext"] == ""


class TestIdempotence:
    def test_same_output_twice(self, store):
        store.cycles.create()
        _intent(store)
        _problem(store, "Checkout is slow")
        store.save_answer("dump-thoughts-text", "Dumping", "a")
        store.save_answer("dump-thoughts-text", "Dumping", "b")

        first = build_prompt_context(store, "Designing")
        second = build_prompt_context(store, "Designing")

        assert first == second
        assert list(first) == list(second)
