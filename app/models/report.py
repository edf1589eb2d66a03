"""Report model for persisted report generations.

Reports are derived, read-only artifacts. Every generation inserts a new
row; the newest row for a survey is its current report.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Index,
    String,
    DateTime,
    ForeignKey,
    JSON,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database import Base


class Report(Base):
    """Model for an audit record of a generated report.

    Attributes:
        id: Primary key (UUID string)
        survey_id: Foreign key to surveys table
        type: Report kind (variable, cross, sample, item)
        parameters: JSON object with the request parameters
        data: JSON list of report rows; shape depends on type
        created_at: When the report was generated
    """

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    survey_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to surveys table"
    )
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Report kind"
    )
    parameters: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Generation parameters"
    )
    data: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Report rows"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    survey: Mapped["Survey"] = relationship(
        "Survey",
        back_populates="reports",
    )

    __table_args__ = (
        # Newest-first listing per survey
        Index("idx_reports_survey_created", "survey_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Report(id={self.id}, "
            f"survey_id={self.survey_id}, "
            f"type={self.type}, "
            f"rows={len(self.data or [])})>"
        )
