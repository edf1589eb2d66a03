"""User and SurveyAssignment models.

Users are administrators or field researchers. An assignment links a
researcher to a survey they must complete and tracks its progress.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Index,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    select,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, Session

from app.models.database import Base


class User(Base):
    """Model for an administrator or field researcher.

    Authentication is handled outside this service, so no credentials are
    stored here.

    Attributes:
        id: Primary key (UUID string)
        name: Full name
        email: Unique e-mail address
        cpf: Taxpayer ID number
        role: "admin" or "researcher"
        first_access: Whether the user has not logged in yet
        created_at: When the user was registered
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        String(254),
        nullable=False,
        unique=True,
        comment="Login e-mail"
    )
    cpf: Mapped[str] = mapped_column(
        String(14),
        nullable=False,
        comment="Taxpayer ID number"
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="researcher",
        comment="admin or researcher"
    )
    first_access: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    assignments: Mapped[list["SurveyAssignment"]] = relationship(
        "SurveyAssignment",
        back_populates="researcher",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @classmethod
    def get_by_email(cls, db: Session, email: str) -> Optional["User"]:
        """Look up a user by e-mail (case-insensitive)."""
        return db.execute(
            select(cls).where(cls.email == email.strip().lower())
        ).scalar_one_or_none()

    @property
    def is_researcher(self) -> bool:
        return self.role == "researcher"

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class SurveyAssignment(Base):
    """Model linking a researcher to a survey they must complete.

    Attributes:
        id: Primary key (UUID string)
        survey_id: Foreign key to surveys table
        researcher_id: Foreign key to users table
        status: pending, in_progress or completed
        assigned_at: When the survey was assigned
        completed_at: When the researcher finished (NULL until completed)
    """

    __tablename__ = "survey_assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    survey_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
    )
    researcher_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    survey: Mapped["Survey"] = relationship(
        "Survey",
        back_populates="assignments",
    )
    researcher: Mapped["User"] = relationship(
        "User",
        back_populates="assignments",
    )

    __table_args__ = (
        Index("idx_assignments_researcher", "researcher_id"),
        Index("idx_assignments_survey", "survey_id"),
    )

    def mark_status(self, status: str) -> None:
        """Move the assignment to a new status.

        Completing sets completed_at; moving away from completed clears it.
        """
        self.status = status
        if status == "completed":
            self.completed_at = datetime.now(timezone.utc)
        else:
            self.completed_at = None

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<SurveyAssignment(id={self.id}, "
            f"survey_id={self.survey_id}, "
            f"researcher_id={self.researcher_id}, "
            f"status={self.status})>"
        )
