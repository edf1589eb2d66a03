"""Survey model for questionnaires and their embedded questions.

Questions are stored inline as an ordered JSON list; list order is the
display order. The survey code is generated at creation and is unique.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    Index,
    String,
    DateTime,
    JSON,
    text,
    select,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, Session

from app.models.database import Base


class Survey(Base):
    """Model for a questionnaire tied to a place, date and contractor.

    Attributes:
        id: Primary key (UUID string)
        name: Survey name
        city: City where the survey is run
        state: State abbreviation or name
        date: Fieldwork date (ISO date string)
        contractor: Who commissioned the survey
        code: Unique generated code (e.g. "SAOSP123456")
        current_manager: JSON object with the incumbent's title and name
        questions: Ordered JSON list of question objects
        created_at: When the survey was created
        updated_at: Last update timestamp
    """

    __tablename__ = "surveys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Survey name"
    )
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="Fieldwork date (YYYY-MM-DD)"
    )
    contractor: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        comment="Generated survey code"
    )

    current_manager: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Incumbent title and name"
    )
    questions: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        server_default=text("'[]'"),
        comment="Ordered list of embedded questions"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    answers: Mapped[list["Answer"]] = relationship(
        "Answer",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reports: Mapped[list["Report"]] = relationship(
        "Report",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    assignments: Mapped[list["SurveyAssignment"]] = relationship(
        "SurveyAssignment",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_surveys_created_at", "created_at"),
    )

    @classmethod
    def code_exists(cls, db: Session, code: str) -> bool:
        """Check whether a survey code is already taken."""
        result = db.execute(
            select(cls.id).where(cls.code == code)
        ).first()
        return result is not None

    def get_question(self, question_id: str) -> Optional[dict[str, Any]]:
        """Get an embedded question by ID, or None."""
        for question in self.questions or []:
            if question.get("id") == question_id:
                return question
        return None

    def replace_questions(self, questions: list[dict[str, Any]]) -> None:
        """Replace the question list.

        Note:
            JSON columns are not mutation-tracked, so the list is always
            reassigned rather than edited in place.
        """
        self.questions = [dict(q) for q in questions]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Survey(id={self.id}, "
            f"code={self.code}, "
            f"name={self.name}, "
            f"questions={len(self.questions or [])})>"
        )
