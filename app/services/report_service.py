"""Report generation, history and export.

Each generation re-reads every answer for the survey, runs the aggregation
engine and stores the result as a new Report row. Generations are not
coordinated: two concurrent requests both insert, and the newest row is
the survey's current report.
"""

import uuid
from typing import Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.report import Report
from app.models.survey import Survey
from app.schemas.report import ExportFormat, ReportType
from app.schemas.survey import Question
from app.services.answer_store import AnswerStore, PersistenceError
from app.services.csv_export import to_csv
from app.services.reports import (
    ReportValidationError,
    build_cross_report,
    build_item_report,
    build_sample_report,
    build_variable_report,
)
from app.services.survey_service import SurveyNotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)


class ReportNotFoundError(Exception):
    """Raised when a report does not exist."""
    pass


class ReportService:
    """Generates, stores, lists and exports reports for a survey."""

    def __init__(self, db: Session, answer_store: AnswerStore):
        """Initialize report service.

        Args:
            db: SQLAlchemy database session for surveys and reports
            answer_store: Store the answers are read from
        """
        self.db = db
        self.answer_store = answer_store

    # Generation

    def generate_variable_report(self, survey_id: str, question_id: str) -> Report:
        """Frequency table for one question.

        Raises:
            SurveyNotFoundError: If the survey does not exist
            ReportValidationError: If question_id is empty
            PersistenceError: If answers cannot be read or the report cannot be saved
        """
        self._get_survey(survey_id)
        answers = self.answer_store.list_answers(survey_id)
        rows = build_variable_report(answers, question_id)
        return self._save(survey_id, ReportType.VARIABLE, {"variable": question_id}, rows)

    def generate_cross_report(self, survey_id: str, variables: Sequence[str]) -> Report:
        """Cross-tabulation of two questions.

        Raises:
            ReportValidationError: Unless exactly two distinct variables are given
        """
        self._get_survey(survey_id)
        answers = self.answer_store.list_answers(survey_id)
        rows = build_cross_report(answers, variables)
        return self._save(survey_id, ReportType.CROSS, {"variables": list(variables)}, rows)

    def generate_sample_report(self, survey_id: str) -> Report:
        """Frequency tables for every answered question."""
        self._get_survey(survey_id)
        answers = self.answer_store.list_answers(survey_id)
        rows = build_sample_report(answers)
        return self._save(survey_id, ReportType.SAMPLE, {}, rows)

    def generate_item_report(self, survey_id: str) -> Report:
        """Raw answers listed under each of the survey's questions."""
        survey = self._get_survey(survey_id)
        questions = [Question.model_validate(q) for q in survey.questions or []]
        answers = self.answer_store.list_answers(survey_id)
        rows = build_item_report(answers, questions)
        return self._save(survey_id, ReportType.ITEM, {}, rows)

    # History

    def get_report(self, report_id: str) -> Report:
        report = self.db.get(Report, report_id)
        if report is None:
            raise ReportNotFoundError(f"Report '{report_id}' not found")
        return report

    def list_reports(self, survey_id: str) -> list[Report]:
        """Reports for a survey, newest first."""
        self._get_survey(survey_id)
        return list(
            self.db.execute(
                select(Report)
                .where(Report.survey_id == survey_id)
                .order_by(Report.created_at.desc(), Report.id)
            ).scalars()
        )

    def get_current_report(self, survey_id: str) -> Optional[Report]:
        """The most recently generated report, or None."""
        reports = self.list_reports(survey_id)
        return reports[0] if reports else None

    # Export

    def export_report(self, report_id: str, format: str = ExportFormat.CSV.value) -> str:
        """Render a stored report in an export format.

        Raises:
            ReportNotFoundError: If the report does not exist
            ReportValidationError: If the format is not supported
        """
        try:
            export_format = ExportFormat(format)
        except ValueError:
            supported = ", ".join(f.value for f in ExportFormat)
            raise ReportValidationError(f"Unsupported export format '{format}' (supported: {supported})")

        report = self.get_report(report_id)
        logger.info(f"Exporting report as {export_format.value}", extra={"report_id": report_id})
        return to_csv(report.data or [])

    # Internals

    def _get_survey(self, survey_id: str) -> Survey:
        survey = self.db.get(Survey, survey_id)
        if survey is None:
            raise SurveyNotFoundError(f"Survey '{survey_id}' not found")
        return survey

    def _save(self, survey_id: str, report_type: ReportType, parameters: dict, rows: Sequence[BaseModel]) -> Report:
        report = Report(
            id=str(uuid.uuid4()),
            survey_id=survey_id,
            type=report_type.value,
            parameters=parameters,
            data=[row.model_dump(mode="json") for row in rows],
        )
        self.db.add(report)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save {report_type.value} report: {e}", extra={"survey_id": survey_id})
            raise PersistenceError(f"Failed to save report: {e}")

        if not rows:
            logger.info(f"Generated empty {report_type.value} report", extra={"survey_id": survey_id, "report_id": report.id})
        else:
            logger.info(
                f"Generated {report_type.value} report with {len(rows)} row(s)",
                extra={"survey_id": survey_id, "report_id": report.id},
            )
        return report
