"""Unit tests for the report aggregation engine.

Tests variable, cross, sample and item reports plus percentage math.
"""

import pytest

from app.schemas.survey import Question, QuestionType
from app.services.reports import (
    ReportValidationError,
    build_cross_report,
    build_item_report,
    build_sample_report,
    build_variable_report,
    percentage,
)
from tests.helpers import make_answer


class TestPercentage:
    """Tests for the percentage helper."""

    def test_simple_share(self):
        assert percentage(1, 4) == 25.0

    def test_zero_total_is_zero(self):
        """A zero total gives 0 rather than dividing by zero."""
        assert percentage(0, 0) == 0.0

    def test_full_precision_kept(self):
        assert percentage(2, 3) == pytest.approx(66.6666666, rel=1e-6)


class TestVariableReport:
    """Tests for build_variable_report."""

    def test_yes_no_yes(self):
        """Two Yes and one No give 66.67% / 33.33%."""
        answers = [
            make_answer("Q1", "Yes", researcher_id="r1"),
            make_answer("Q1", "No", researcher_id="r2"),
            make_answer("Q1", "Yes", researcher_id="r3"),
        ]

        rows = build_variable_report(answers, "Q1")

        assert [(r.value, r.count) for r in rows] == [("Yes", 2), ("No", 1)]
        assert rows[0].percentage == pytest.approx(66.67, abs=0.01)
        assert rows[1].percentage == pytest.approx(33.33, abs=0.01)

    def test_other_questions_ignored(self):
        answers = [
            make_answer("Q1", "Yes"),
            make_answer("Q2", "18-34"),
        ]

        rows = build_variable_report(answers, "Q1")

        assert len(rows) == 1
        assert rows[0].value == "Yes"
        assert rows[0].percentage == 100.0

    def test_no_matching_answers_gives_empty_list(self):
        answers = [make_answer("Q2", "18-34")]

        assert build_variable_report(answers, "Q1") == []

    def test_empty_input_gives_empty_list(self):
        assert build_variable_report([], "Q1") == []

    def test_percentages_sum_to_100(self):
        values = ["A", "B", "C", "A", "B", "A", "C"]
        answers = [make_answer("Q1", v, researcher_id=f"r{i}") for i, v in enumerate(values)]

        rows = build_variable_report(answers, "Q1")

        assert sum(r.count for r in rows) == len(values)
        assert sum(r.percentage for r in rows) == pytest.approx(100.0)

    def test_first_seen_order(self):
        answers = [
            make_answer("Q1", "No", researcher_id="r1"),
            make_answer("Q1", "Yes", researcher_id="r2"),
            make_answer("Q1", "Yes", researcher_id="r3"),
        ]

        rows = build_variable_report(answers, "Q1")

        assert [r.value for r in rows] == ["No", "Yes"]

    def test_empty_question_id_rejected(self):
        with pytest.raises(ReportValidationError):
            build_variable_report([make_answer("Q1", "Yes")], "")

    def test_idempotent(self):
        answers = [make_answer("Q1", "Yes"), make_answer("Q1", "No", researcher_id="r2")]

        assert build_variable_report(answers, "Q1") == build_variable_report(answers, "Q1")


class TestCrossReport:
    """Tests for build_cross_report."""

    @pytest.fixture
    def answers(self):
        """Three researchers answering approval (Q1) and age group (Q2)."""
        return [
            make_answer("Q1", "Yes", researcher_id="r1"),
            make_answer("Q2", "18-34", researcher_id="r1"),
            make_answer("Q1", "Yes", researcher_id="r2"),
            make_answer("Q2", "35+", researcher_id="r2"),
            make_answer("Q1", "No", researcher_id="r3"),
            make_answer("Q2", "35+", researcher_id="r3"),
        ]

    def test_rows_per_first_variable(self, answers):
        rows = build_cross_report(answers, ["Q1", "Q2"])

        assert [r.value for r in rows] == ["Yes", "No"]
        yes_row, no_row = rows
        assert yes_row.total == 2
        assert [(d.value, d.count) for d in yes_row.details] == [("18-34", 1), ("35+", 1)]
        assert [d.percentage for d in yes_row.details] == [50.0, 50.0]
        assert no_row.total == 1
        assert no_row.details[0].value == "35+"
        assert no_row.details[0].percentage == 100.0

    def test_row_totals_match_detail_counts(self, answers):
        for row in build_cross_report(answers, ["Q1", "Q2"]):
            assert row.total == sum(d.count for d in row.details)
            assert sum(d.percentage for d in row.details) == pytest.approx(100.0)

    def test_researcher_missing_one_variable_not_counted(self):
        answers = [
            make_answer("Q1", "Yes", researcher_id="r1"),
            make_answer("Q2", "18-34", researcher_id="r1"),
            make_answer("Q1", "No", researcher_id="r2"),
        ]

        rows = build_cross_report(answers, ["Q1", "Q2"])

        assert len(rows) == 1
        assert rows[0].value == "Yes"

    def test_last_answer_per_researcher_wins(self):
        answers = [
            make_answer("Q1", "Yes", researcher_id="r1", minutes=0),
            make_answer("Q1", "No", researcher_id="r1", minutes=1),
            make_answer("Q2", "35+", researcher_id="r1", minutes=2),
        ]

        rows = build_cross_report(answers, ["Q1", "Q2"])

        assert len(rows) == 1
        assert rows[0].value == "No"
        assert rows[0].total == 1

    def test_blank_answers_skipped(self):
        answers = [
            make_answer("Q1", "", researcher_id="r1"),
            make_answer("Q2", "35+", researcher_id="r1"),
        ]

        assert build_cross_report(answers, ["Q1", "Q2"]) == []

    def test_variable_order_matters(self, answers):
        rows = build_cross_report(answers, ["Q2", "Q1"])

        assert [r.value for r in rows] == ["18-34", "35+"]
        assert rows[1].total == 2

    @pytest.mark.parametrize("variables", [[], ["Q1"], ["Q1", "Q2", "Q3"], ["Q1", "Q1"], ["Q1", ""]])
    def test_invalid_variables_rejected(self, answers, variables):
        with pytest.raises(ReportValidationError):
            build_cross_report(answers, variables)

    def test_empty_input_gives_empty_list(self):
        assert build_cross_report([], ["Q1", "Q2"]) == []


class TestSampleReport:
    """Tests for build_sample_report."""

    def test_one_row_per_question(self):
        answers = [
            make_answer("Q1", "Yes", researcher_id="r1"),
            make_answer("Q2", "18-34", researcher_id="r1"),
            make_answer("Q1", "No", researcher_id="r2"),
            make_answer("Q1", "Yes", researcher_id="r3"),
        ]

        rows = build_sample_report(answers)

        assert [r.question_id for r in rows] == ["Q1", "Q2"]
        q1 = rows[0]
        assert q1.total == 3
        assert [(d.value, d.count) for d in q1.details] == [("Yes", 2), ("No", 1)]
        assert rows[1].total == 1
        assert rows[1].details[0].percentage == 100.0

    def test_matches_variable_report_per_question(self):
        answers = [
            make_answer("Q1", "Yes", researcher_id="r1"),
            make_answer("Q1", "No", researcher_id="r2"),
            make_answer("Q2", "35+", researcher_id="r2"),
        ]

        for row in build_sample_report(answers):
            assert row.details == build_variable_report(answers, row.question_id)

    def test_empty_input(self):
        assert build_sample_report([]) == []


class TestItemReport:
    """Tests for build_item_report."""

    @pytest.fixture
    def questions(self):
        return [
            Question(id="Q1", text="Do you approve?", type=QuestionType.MULTIPLE_CHOICE,
                     options=["Yes", "No"]),
            Question(id="Q3", text="Comments"),
        ]

    def test_answers_listed_under_questions(self, questions):
        answers = [
            make_answer("Q3", "Fix the roads", researcher_id="r1"),
            make_answer("Q1", "Yes", researcher_id="r1"),
            make_answer("Q3", "More buses", researcher_id="r2", minutes=5),
        ]

        rows = build_item_report(answers, questions)

        assert [r.question_id for r in rows] == ["Q1", "Q3"]
        assert rows[0].question_text == "Do you approve?"
        assert [a.answer for a in rows[1].answers] == ["Fix the roads", "More buses"]
        assert rows[1].answers[1].researcher_id == "r2"

    def test_unanswered_question_has_empty_list(self, questions):
        rows = build_item_report([make_answer("Q1", "No")], questions)

        assert rows[1].answers == []

    def test_answers_to_unknown_questions_dropped(self, questions):
        rows = build_item_report([make_answer("Q9", "orphan")], questions)

        assert all(r.answers == [] for r in rows)
