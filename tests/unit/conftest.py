"""
Unit test fixtures.

All unit tests should be:
- Fast (< 100ms)
- Isolated (in-memory store, nothing persisted)
- Deterministic (same result every time)
"""

import pytest

from workflow import parse_catalog


@pytest.fixture
def answer_row():
    """Raw answer row as the store returns it."""
    return {
        "id": 7,
        "question_id": "problem-boundaries-text",
        "situation": "SelectingProblem",
        "answer": "Checkout drops carts on slow networks",
        "answered_at": "2024-01-15T12:00:00.000000+00:00",
        "created_at": "2024-01-15 12:00:00",
        "intent_id": 3,
        "problem_id": None,
        "parent_id": None,
        "cycle_id": 1,
    }


@pytest.fixture
def mini_catalog():
    """Two-situation catalog for navigation tests."""
    return parse_catalog({
        "situations": [
            {
                "situation": "Dumping",
                "start_question_id": "dump-thoughts-text",
                "questions": [
                    {"id": "dump-thoughts-text", "question": "Thoughts?", "next_question_id": "ready"},
                    {
                        "id": "ready",
                        "question": "Ready?",
                        "type": "yesno",
                        "on_yes_next_situation": "Designing",
                        "on_no_next_question_id": "dump-thoughts-text",
                    },
                ],
            },
            {
                "situation": "Designing",
                "start_question_id": "design-approach-text",
                "questions": [
                    {"id": "design-approach-text", "question": "Design?"},
                ],
            },
        ]
    })
