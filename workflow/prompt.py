"""
Prompt helpers - template fill and markdown formatting of gathered answers.
"""

import re
from datetime import datetime

from models import CycleSummary, RelatedContext

PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}")

RELATED_SECTIONS = [
    ("problems", "Related Problems"),
    ("design", "Design Decisions"),
    ("acceptance", "Acceptance Criteria"),
    ("implementation", "Implementation Notes"),
    ("feedback", "Feedback"),
    ("improvements", "Improvements to Consider"),
]


def fill_template(template: str, context: dict) -> str:
    """Replace every {{key}} with its context value. Unknown keys become empty."""
    return PLACEHOLDER.sub(lambda m: context.get(m.group(1).strip()) or "", template)


def format_related_context(related: RelatedContext) -> str:
    """Markdown sections for the lineage groups that have content."""
    sections = []

    if related.intent:
        sections.append(f"## Intent\n{related.intent}")

    for field, title in RELATED_SECTIONS:
        items = getattr(related, field)
        if items:
            numbered = "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1))
            sections.append(f"## {title}\n{numbered}")

    return "\n\n".join(sections)


def _format_time(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return timestamp


def format_cycle_markdown(summary: CycleSummary) -> str:
    """
    Copyable markdown dump of one cycle.

    Text answers only, oldest first, with a heading whenever the situation
    changes.
    """
    cycle = summary.cycle
    lines = [
        f"# Cycle {cycle.cycle_number}",
        "",
        f"- **Started:** {_format_time(cycle.started_at)}",
        f"- **Completed:** {_format_time(cycle.completed_at) if cycle.completed_at else '-'}",
        "",
    ]

    answers = sorted(summary.text_answers, key=lambda a: (a.answered_at, a.id))
    if not answers:
        lines.append("*(No text answers)*")
        return "\n".join(lines)

    last_situation = None
    for answer in answers:
        if answer.situation != last_situation:
            lines.append(f"## {answer.situation}")
            last_situation = answer.situation
        lines.append(f"### {answer.question_id}")
        lines.append(answer.value.strip())
        lines.append(f"*Answered: {_format_time(answer.answered_at)}*")

    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()
