"""Report aggregation engine.

Pure functions that turn a flat list of answers into report rows. Nothing
here touches the database; callers fetch the answers first.

Output order follows the order in which category values are first seen
while scanning the input, so the same answers in a different order give
value-equal rows in a different order.
"""

from collections import Counter
from typing import Iterable, Protocol, Sequence
from datetime import datetime

from app.schemas.report import CrossRow, FrequencyRow, ItemAnswer, ItemRow, SampleRow
from app.schemas.survey import Question
from app.logging_config import get_logger

logger = get_logger(__name__)


class ReportValidationError(Exception):
    """Raised when a report request is malformed."""
    pass


class AnswerLike(Protocol):
    """Attributes the engine reads from an answer."""
    question_id: str
    researcher_id: str
    answer: str
    created_at: datetime


def percentage(count: int, total: int) -> float:
    """Share of ``count`` in ``total`` on a 0-100 scale; 0 when total is 0."""
    if total == 0:
        return 0.0
    return (count / total) * 100.0


def _frequency_rows(tally: Counter) -> list[FrequencyRow]:
    total = sum(tally.values())
    return [
        FrequencyRow(value=value, count=count, percentage=percentage(count, total))
        for value, count in tally.items()
    ]


def build_variable_report(answers: Iterable[AnswerLike], question_id: str) -> list[FrequencyRow]:
    """Frequency table of the answers to one question.

    Args:
        answers: All answers for a survey
        question_id: Question to tally

    Returns:
        One row per distinct answer; empty when nobody answered

    Raises:
        ReportValidationError: If question_id is empty

    Example:
        >>> rows = build_variable_report(answers, "Q1")  # Yes, No, Yes
        >>> [(r.value, r.count, round(r.percentage, 2)) for r in rows]
        [('Yes', 2, 66.67), ('No', 1, 33.33)]
    """
    if not question_id:
        raise ReportValidationError("A question ID is required for a variable report")

    tally: Counter = Counter()
    for answer in answers:
        if answer.question_id == question_id:
            tally[answer.answer] += 1

    return _frequency_rows(tally)


def build_cross_report(answers: Iterable[AnswerLike], variables: Sequence[str]) -> list[CrossRow]:
    """Cross-tabulate two questions over researchers.

    For each researcher the last answer (in scan order) to each variable is
    taken; researchers who answered both contribute one count to the
    (first value, second value) cell. Percentages within a row are relative
    to that row's total.

    Args:
        answers: All answers for a survey
        variables: Exactly two distinct question IDs

    Returns:
        One row per value of the first variable

    Raises:
        ReportValidationError: If variables is not two distinct question IDs
    """
    variables = list(variables or [])
    if len(variables) != 2:
        raise ReportValidationError(
            f"A cross report needs exactly two variables, got {len(variables)}"
        )
    var_a, var_b = variables
    if not var_a or not var_b or var_a == var_b:
        raise ReportValidationError("A cross report needs two distinct, non-empty variables")

    by_researcher: dict[str, dict[str, str]] = {}
    for answer in answers:
        responses = by_researcher.setdefault(answer.researcher_id, {})
        if answer.question_id in (var_a, var_b):
            responses[answer.question_id] = answer.answer

    grouped: dict[str, Counter] = {}
    for responses in by_researcher.values():
        value_a = responses.get(var_a)
        value_b = responses.get(var_b)
        if value_a and value_b:
            grouped.setdefault(value_a, Counter())[value_b] += 1

    logger.debug(f"Cross report over {len(by_researcher)} researcher(s): {len(grouped)} row(s)")
    return [
        CrossRow(value=value_a, total=sum(tally.values()), details=_frequency_rows(tally))
        for value_a, tally in grouped.items()
    ]


def build_sample_report(answers: Iterable[AnswerLike]) -> list[SampleRow]:
    """Frequency table for every question present, in one pass.

    Args:
        answers: All answers for a survey

    Returns:
        One row per question ID seen in the answers
    """
    grouped: dict[str, Counter] = {}
    for answer in answers:
        grouped.setdefault(answer.question_id, Counter())[answer.answer] += 1

    return [
        SampleRow(question_id=question_id, total=sum(tally.values()), details=_frequency_rows(tally))
        for question_id, tally in grouped.items()
    ]


def build_item_report(answers: Iterable[AnswerLike], questions: Sequence[Question]) -> list[ItemRow]:
    """List the raw answers under each question of the survey.

    Questions keep survey order; answers to questions no longer in the
    survey are left out.

    Args:
        answers: All answers for a survey
        questions: The survey's questions

    Returns:
        One row per question, possibly with an empty answer list
    """
    by_question: dict[str, list[ItemAnswer]] = {}
    for answer in answers:
        by_question.setdefault(answer.question_id, []).append(
            ItemAnswer(
                researcher_id=answer.researcher_id,
                answer=answer.answer,
                created_at=answer.created_at,
            )
        )

    return [
        ItemRow(
            question_id=question.id,
            question_text=question.text,
            answers=by_question.get(question.id, []),
        )
        for question in questions
    ]
