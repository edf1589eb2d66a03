"""Builders shared by unit and integration tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from app.schemas.answer import AnswerRecord


def make_answer(
    question_id: str,
    answer: str,
    researcher_id: str = "r1",
    survey_id: str = "survey-1",
    answer_id: Optional[str] = None,
    minutes: int = 0,
) -> AnswerRecord:
    """Build an AnswerRecord with a deterministic timestamp."""
    created_at = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return AnswerRecord(
        id=answer_id or f"{researcher_id}-{question_id}-{minutes}-{answer}",
        survey_id=survey_id,
        question_id=question_id,
        researcher_id=researcher_id,
        answer=answer,
        created_at=created_at,
    )
