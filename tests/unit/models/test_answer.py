"""Unit tests for answer models."""

import pytest
from pydantic import ValidationError

from models import Answer, LinkOverrides, normalize_timestamp, to_answer_text


class TestAnswer:
    """Test Answer model."""

    def test_from_stored_column_name(self, answer_row):
        answer = Answer.model_validate(answer_row)
        assert answer.value == "Checkout drops carts on slow networks"
        assert answer.answer == answer.value
        assert answer.intent_id == 3
        assert answer.problem_id is None

    def test_unknown_columns_ignored(self, answer_row):
        answer_row["added_by_newer_schema"] = "x"
        answer = Answer.model_validate(answer_row)
        assert not hasattr(answer, "added_by_newer_schema")

    def test_boolean_answers(self, answer_row):
        answer_row["answer"] = "true"
        assert Answer.model_validate(answer_row).is_boolean

        answer_row["answer"] = "True enough"
        assert not Answer.model_validate(answer_row).is_boolean

    def test_dump_uses_value(self, answer_row):
        dumped = Answer.model_validate(answer_row).model_dump()
        assert dumped["value"] == answer_row["answer"]
        assert "created_at" not in dumped


class TestAnswerText:
    def test_booleans(self):
        assert to_answer_text(True) == "true"
        assert to_answer_text(False) == "false"

    def test_text_unchanged(self):
        assert to_answer_text("Reduce churn") == "Reduce churn"


class TestNormalizeTimestamp:
    def test_trailing_z(self):
        assert normalize_timestamp("2023-05-01T09:00:00.000Z") == "2023-05-01T09:00:00.000000+00:00"

    def test_offset_converted_to_utc(self):
        assert normalize_timestamp("2023-05-01T11:00:00+02:00") == "2023-05-01T09:00:00.000000+00:00"

    def test_already_normalized(self):
        value = "2023-05-01T09:00:00.123456+00:00"
        assert normalize_timestamp(value) == value

    def test_garbage(self):
        with pytest.raises(ValueError):
            normalize_timestamp("yesterday")


class TestLinkOverrides:
    """Only fields the caller set count as overrides."""

    def test_empty_overrides_nothing(self):
        assert LinkOverrides().explicit() == {}

    def test_explicit_none_is_kept(self):
        assert LinkOverrides(intent_id=None).explicit() == {"intent_id": None}

    def test_values(self):
        overrides = LinkOverrides(problem_id=4, cycle_id=2)
        assert overrides.explicit() == {"problem_id": 4, "cycle_id": 2}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            LinkOverrides(situation="Designing")
