"""Unit tests for prompt helpers."""

from models import Answer, Cycle, CycleSummary, RelatedContext
from workflow import fill_template, format_cycle_markdown, format_related_context


def _answer(id, situation, question_id, value):
    return Answer(
        id=id,
        question_id=question_id,
        situation=situation,
        value=value,
        answered_at=f"2024-01-15T12:00:{id:02d}.000000+00:00",
    )


class TestFillTemplate:
    def test_fills_known_keys(self):
        assert fill_template("Intent: {{intent}}", {"intent": "Reduce churn"}) == "Intent: Reduce churn"

    def test_unknown_keys_empty(self):
        assert fill_template("[{{missing}}]", {}) == "[]"

    def test_whitespace_in_placeholder(self):
        assert fill_template("{{ problem }}", {"problem": "Slow"}) == "Slow"

    def test_hyphenated_question_ids(self):
        context = {"dump-thoughts-text": "1. a\n\n2. b"}
        assert fill_template("{{dump-thoughts-text}}", context) == "1. a\n\n2. b"


class TestRelatedContext:
    def test_empty(self):
        assert format_related_context(RelatedContext()) == ""

    def test_sections(self):
        related = RelatedContext(
            intent="Reduce churn",
            problems=["Checkout is slow", "Search is wrong"],
            feedback=["Faster now"],
        )
        assert format_related_context(related) == (
            "## Intent\nReduce churn\n\n"
            "## Related Problems\n1. Checkout is slow\n2. Search is wrong\n\n"
            "## Feedback\n1. Faster now"
        )


class TestCycleMarkdown:
    def test_no_text_answers(self):
        cycle = Cycle(id=1, cycle_number=3, started_at="2024-01-15T12:00:00+00:00")
        summary = CycleSummary(cycle=cycle, answers=[_answer(1, "Dumping", "dump-ready", "true")])

        markdown = format_cycle_markdown(summary)

        assert markdown.startswith("# Cycle 3")
        assert "- **Started:** 2024-01-15 12:00:00" in markdown
        assert "- **Completed:** -" in markdown
        assert markdown.endswith("*(No text answers)*")

    def test_situation_headings(self):
        cycle = Cycle(
            id=1,
            cycle_number=1,
            started_at="2024-01-15T12:00:00+00:00",
            completed_at="2024-01-15T13:00:00+00:00",
            status="completed",
        )
        summary = CycleSummary(cycle=cycle, answers=[
            _answer(2, "Dumping", "dump-thoughts-text", "too many meetings"),
            _answer(1, "Dumping", "dump-thoughts-text", "slow builds"),
            _answer(3, "DefiningIntent", "intent-summary-text", "Faster builds"),
        ])

        markdown = format_cycle_markdown(summary)

        assert markdown.count("## Dumping") == 1
        assert markdown.index("slow builds") < markdown.index("too many meetings")
        assert "## DefiningIntent\n### intent-summary-text\nFaster builds" in markdown
        assert "*Answered: 2024-01-15 12:00:03*" in markdown
        assert "- **Completed:** 2024-01-15 13:00:00" in markdown
