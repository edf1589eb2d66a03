"""Survey management service.

Creates, edits, duplicates and deletes surveys and maintains the ordered
question list embedded in each survey.
"""

import time
import uuid
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.survey import Survey
from app.schemas.survey import (
    Question,
    QuestionCreate,
    QuestionUpdate,
    SurveyCreate,
    SurveyUpdate,
)
from app.services.answer_store import PersistenceError
from app.services.survey_loader import SurveyLoader, SurveyValidationError, get_survey_loader
from app.logging_config import get_logger

logger = get_logger(__name__)

MAX_CODE_ATTEMPTS = 1000


class SurveyNotFoundError(Exception):
    """Raised when a survey does not exist."""
    pass


class QuestionNotFoundError(Exception):
    """Raised when a question does not exist in its survey."""
    pass


def generate_survey_code(city: str, state: str, timestamp_ms: Optional[int] = None) -> str:
    """Build a survey code from place and time.

    First three letters of the city and first two of the state, upper-cased,
    followed by the last six digits of a millisecond timestamp.

    Example:
        >>> generate_survey_code("Campinas", "SP", 1717171717171)
        'CAMSP717171'
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    city_code = city.strip()[:3].upper()
    state_code = state.strip()[:2].upper()
    return f"{city_code}{state_code}{str(timestamp_ms)[-6:]}"


class SurveyService:
    """Survey and question CRUD on top of a database session.

    Every mutating method commits; on a database error it rolls back and
    raises PersistenceError.
    """

    def __init__(self, db: Session, loader: Optional[SurveyLoader] = None):
        """Initialize survey service.

        Args:
            db: SQLAlchemy database session
            loader: Definition loader for imports (defaults to the global one)
        """
        self.db = db
        self.loader = loader

    # Surveys

    def get_survey(self, survey_id: str) -> Survey:
        """Fetch a survey by ID.

        Raises:
            SurveyNotFoundError: If no survey has this ID
        """
        survey = self.db.get(Survey, survey_id)
        if survey is None:
            raise SurveyNotFoundError(f"Survey '{survey_id}' not found")
        return survey

    def list_surveys(self) -> list[Survey]:
        """All surveys, newest first."""
        return list(
            self.db.execute(
                select(Survey).order_by(Survey.created_at.desc(), Survey.id)
            ).scalars()
        )

    def create_survey(self, data: SurveyCreate) -> Survey:
        """Create a survey with a freshly generated code.

        Questions in the payload get new IDs and keep their order.
        """
        survey = Survey(
            id=str(uuid.uuid4()),
            name=data.name,
            city=data.city,
            state=data.state,
            date=data.date,
            contractor=data.contractor,
            code=self._unique_code(data.city, data.state),
            current_manager=data.current_manager.model_dump(mode="json"),
            questions=[self._new_question(q) for q in data.questions],
        )
        self.db.add(survey)
        self._commit(f"create survey {survey.code}")

        logger.info(f"Created survey {survey.code}", extra={"survey_id": survey.id})
        return survey

    def update_survey(self, survey_id: str, data: SurveyUpdate) -> Survey:
        """Apply a partial update to the descriptive fields."""
        survey = self.get_survey(survey_id)
        changes = data.model_dump(exclude_unset=True, mode="json")
        for field, value in changes.items():
            if value is None:
                continue
            setattr(survey, field, value)

        self._commit(f"update survey {survey_id}")
        logger.info(f"Updated survey fields {sorted(changes)}", extra={"survey_id": survey_id})
        return survey

    def delete_survey(self, survey_id: str) -> None:
        """Delete a survey together with its answers, reports and assignments."""
        survey = self.get_survey(survey_id)
        self.db.delete(survey)
        self._commit(f"delete survey {survey_id}")
        logger.info("Deleted survey", extra={"survey_id": survey_id})

    def duplicate_survey(self, survey_id: str) -> Survey:
        """Copy a survey under a new ID and code, questions included."""
        original = self.get_survey(survey_id)
        copy = Survey(
            id=str(uuid.uuid4()),
            name=f"{original.name} (Copy)",
            city=original.city,
            state=original.state,
            date=original.date,
            contractor=original.contractor,
            code=self._unique_code(original.city, original.state),
            current_manager=dict(original.current_manager),
            questions=[dict(q) for q in original.questions or []],
        )
        self.db.add(copy)
        self._commit(f"duplicate survey {survey_id}")

        logger.info(f"Duplicated survey as {copy.code}", extra={"survey_id": survey_id})
        return copy

    def import_survey(self, definition_id: str) -> Survey:
        """Create a survey from a YAML definition.

        Raises:
            SurveyDefinitionNotFoundError: If the definition file is missing
            SurveyValidationError: If the definition is invalid
        """
        loader = self.loader or get_survey_loader()
        definition = loader.load_definition(definition_id)
        return self.create_survey(SurveyCreate(**definition.model_dump(exclude={"id"})))

    # Questions

    def get_questions(self, survey_id: str) -> list[Question]:
        """The survey's questions as validated models, in display order."""
        survey = self.get_survey(survey_id)
        return [Question.model_validate(q) for q in survey.questions or []]

    def add_question(self, survey_id: str, data: QuestionCreate) -> Question:
        """Append a question to the end of the survey."""
        survey = self.get_survey(survey_id)
        question = self._new_question(data)
        survey.replace_questions([*(survey.questions or []), question])
        self._commit(f"add question to survey {survey_id}")

        logger.info(f"Added question {question['id']}", extra={"survey_id": survey_id})
        return Question.model_validate(question)

    def update_question(self, survey_id: str, question_id: str, data: QuestionUpdate) -> Question:
        """Apply a partial update to one question, keeping its position.

        Raises:
            QuestionNotFoundError: If the question is not in the survey
            SurveyValidationError: If the merged question is invalid
        """
        survey = self.get_survey(survey_id)
        current = survey.get_question(question_id)
        if current is None:
            raise QuestionNotFoundError(f"Question '{question_id}' not found in survey '{survey_id}'")

        merged = {**current, **data.model_dump(exclude_unset=True, mode="json")}
        if merged.get("type") == "text":
            merged["options"] = None
        try:
            updated = Question.model_validate(merged)
        except ValidationError as e:
            raise SurveyValidationError(f"Invalid question update: {e}")

        survey.replace_questions([
            updated.model_dump(mode="json") if q.get("id") == question_id else q
            for q in survey.questions
        ])
        self._commit(f"update question {question_id}")

        logger.info(f"Updated question {question_id}", extra={"survey_id": survey_id})
        return updated

    def delete_question(self, survey_id: str, question_id: str) -> None:
        """Remove a question; existing answers to it are kept."""
        survey = self.get_survey(survey_id)
        if survey.get_question(question_id) is None:
            raise QuestionNotFoundError(f"Question '{question_id}' not found in survey '{survey_id}'")

        survey.replace_questions([q for q in survey.questions if q.get("id") != question_id])
        self._commit(f"delete question {question_id}")
        logger.info(f"Deleted question {question_id}", extra={"survey_id": survey_id})

    # Internals

    @staticmethod
    def _new_question(data: QuestionCreate) -> dict:
        return Question(id=str(uuid.uuid4()), **data.model_dump()).model_dump(mode="json")

    def _unique_code(self, city: str, state: str) -> str:
        timestamp_ms = int(time.time() * 1000)
        for offset in range(MAX_CODE_ATTEMPTS):
            code = generate_survey_code(city, state, timestamp_ms + offset)
            if not Survey.code_exists(self.db, code):
                return code
        raise PersistenceError(f"Could not generate a unique survey code for {city}/{state}")

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")
            self.db.rollback()
            raise PersistenceError(f"Failed to {action}: {e}")
