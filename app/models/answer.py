"""Answer model for storing individual survey answers.

Each answer is one researcher's response to one question of one survey.
Answers are immutable once stored; resubmitting creates a new row.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Index,
    String,
    Text,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class Answer(Base):
    """Model for storing individual survey answers.

    The ID is generated by the submitter (not the database) so an answer
    keeps its identity while it waits in the offline queue.

    Attributes:
        id: Primary key (UUID string assigned at submission)
        survey_id: Foreign key to surveys table
        question_id: ID of the embedded question being answered
        researcher_id: ID of the researcher who collected the answer
        answer: Answer text (choice label for multiple-choice questions)
        created_at: When the answer was captured in the field
    """

    __tablename__ = "answers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    survey_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to surveys table"
    )
    question_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="ID of the question being answered"
    )
    researcher_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="ID of the researcher who collected the answer"
    )
    answer: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Answer text"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When the answer was captured"
    )

    survey: Mapped["Survey"] = relationship(
        "Survey",
        back_populates="answers",
    )

    __table_args__ = (
        # No uniqueness on (survey, question, researcher): resubmissions are kept
        Index("idx_answers_survey_question", "survey_id", "question_id"),
        Index("idx_answers_survey_created", "survey_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Answer(id={self.id}, "
            f"survey_id={self.survey_id}, "
            f"question_id={self.question_id}, "
            f"researcher_id={self.researcher_id})>"
        )
