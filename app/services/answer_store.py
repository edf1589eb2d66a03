"""Durable answer storage.

The answer queue and the report service talk to the database through this
store. Every failure coming out of SQLAlchemy is re-raised as
PersistenceError so callers have one exception to handle.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.answer import Answer
from app.schemas.answer import AnswerRecord
from app.logging_config import get_logger

logger = get_logger(__name__)


class PersistenceError(Exception):
    """Raised when the durable store rejects a read or write."""
    pass


class AnswerStore:
    """SQLAlchemy-backed answer store.

    Each call opens its own session from ``session_factory`` so the store can
    be shared by request handlers and the answer queue alike.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize answer store.

        Args:
            session_factory: SQLAlchemy session factory
        """
        self.session_factory = session_factory

    @staticmethod
    def _to_model(record: AnswerRecord) -> Answer:
        return Answer(
            id=record.id,
            survey_id=record.survey_id,
            question_id=record.question_id,
            researcher_id=record.researcher_id,
            answer=record.answer,
            created_at=record.created_at,
        )

    def insert_answer(self, record: AnswerRecord) -> None:
        """Insert a single answer.

        Raises:
            PersistenceError: If the insert fails
        """
        self.insert_answers([record])

    def insert_answers(self, records: Iterable[AnswerRecord]) -> int:
        """Insert a batch of answers in one transaction.

        Answers whose ID is already stored are skipped, so re-sending a batch
        whose first attempt actually committed does not create duplicates.
        Either every new answer is stored or none is.

        Args:
            records: Answers to insert

        Returns:
            Number of answers newly inserted

        Raises:
            PersistenceError: If the transaction fails
        """
        records = list(records)
        if not records:
            return 0

        try:
            with self.session_factory() as db:
                ids = [r.id for r in records]
                existing = set(
                    db.execute(select(Answer.id).where(Answer.id.in_(ids))).scalars()
                )
                seen = set(existing)
                new_answers = []
                for record in records:
                    if record.id in seen:
                        continue
                    seen.add(record.id)
                    new_answers.append(self._to_model(record))

                db.add_all(new_answers)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert {len(records)} answer(s): {e}")
            raise PersistenceError(f"Answer insert failed: {e}")

        if existing:
            logger.info(f"Skipped {len(existing)} answer(s) already stored")
        logger.debug(f"Inserted {len(new_answers)} answer(s)")
        return len(new_answers)

    def list_answers(self, survey_id: str) -> list[AnswerRecord]:
        """Fetch every answer for a survey in capture order.

        Raises:
            PersistenceError: If the query fails
        """
        try:
            with self.session_factory() as db:
                rows = db.execute(
                    select(Answer)
                    .where(Answer.survey_id == survey_id)
                    .order_by(Answer.created_at, Answer.id)
                ).scalars().all()
                return [AnswerRecord.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch answers for survey {survey_id}: {e}")
            raise PersistenceError(f"Answer query failed: {e}")
