"""Unit tests for the survey management service."""

from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.models.survey import Survey
from app.schemas.survey import QuestionCreate, QuestionType, QuestionUpdate, SurveyCreate, SurveyUpdate
from app.services.answer_store import PersistenceError
from app.services.survey_loader import SurveyDefinitionNotFoundError, SurveyLoader, SurveyValidationError
from app.services.survey_service import (
    QuestionNotFoundError,
    SurveyNotFoundError,
    SurveyService,
    generate_survey_code,
)

SURVEYS_DIR = Path(__file__).resolve().parents[2] / "surveys"


@pytest.fixture
def service(db_session):
    return SurveyService(db_session, loader=SurveyLoader(surveys_dir=str(SURVEYS_DIR)))


@pytest.fixture
def survey_data():
    return SurveyCreate(
        name="City Hall Approval",
        city="Campinas",
        state="SP",
        date="2024-09-01",
        contractor="Instituto Exemplo",
        current_manager={"type": "Prefeito", "name": "Joao Silva"},
        questions=[
            QuestionCreate(text="Do you approve?", type="multiple_choice", options=["Yes", "No"]),
            QuestionCreate(text="Comments"),
        ],
    )


class TestGenerateSurveyCode:
    """Tests for generate_survey_code."""

    def test_code_format(self):
        assert generate_survey_code("Campinas", "SP", 1717171717171) == "CAMSP717171"

    def test_lowercase_and_long_state(self):
        assert generate_survey_code("rio de janeiro", "rj", 1000000123456) == "RIORJ123456"

    def test_short_city(self):
        assert generate_survey_code("Ilo", "Sao Paulo", 42) == "ILOSA42"

    def test_defaults_to_now(self):
        code = generate_survey_code("Campinas", "SP")

        assert code.startswith("CAMSP")
        assert len(code) == 11


class TestSurveyCrud:
    """Tests for survey create/read/update/delete."""

    def test_create_survey(self, service, survey_data):
        survey = service.create_survey(survey_data)

        assert survey.id
        assert survey.code.startswith("CAMSP")
        assert survey.current_manager == {"type": "Prefeito", "name": "Joao Silva"}
        assert [q["text"] for q in survey.questions] == ["Do you approve?", "Comments"]
        assert len({q["id"] for q in survey.questions}) == 2

    def test_codes_unique_within_same_millisecond(self, service, survey_data):
        with patch("app.services.survey_service.time.time", return_value=1717171717.1715):
            first = service.create_survey(survey_data)
            second = service.create_survey(survey_data)

        assert first.code == "CAMSP717171"
        assert second.code == "CAMSP717172"

    def test_get_missing_survey(self, service):
        with pytest.raises(SurveyNotFoundError):
            service.get_survey("missing")

    def test_list_surveys_newest_first(self, service, survey_data, db_session):
        older = service.create_survey(survey_data)
        newer = service.create_survey(survey_data)
        older.created_at = newer.created_at.replace(year=2000)
        db_session.commit()

        assert [s.id for s in service.list_surveys()] == [newer.id, older.id]

    def test_update_survey(self, service, survey_data):
        survey = service.create_survey(survey_data)

        updated = service.update_survey(survey.id, SurveyUpdate(name="Renamed", city="Santos"))

        assert updated.name == "Renamed"
        assert updated.city == "Santos"
        assert updated.code == survey.code
        assert updated.contractor == "Instituto Exemplo"

    def test_update_manager(self, service, survey_data):
        survey = service.create_survey(survey_data)

        updated = service.update_survey(
            survey.id, SurveyUpdate(current_manager={"type": "Prefeita", "name": "Ana Lima"})
        )

        assert updated.current_manager == {"type": "Prefeita", "name": "Ana Lima"}

    def test_delete_survey(self, service, survey_data, db_session):
        survey = service.create_survey(survey_data)

        service.delete_survey(survey.id)

        assert db_session.get(Survey, survey.id) is None
        with pytest.raises(SurveyNotFoundError):
            service.delete_survey(survey.id)

    def test_duplicate_survey(self, service, survey_data):
        original = service.create_survey(survey_data)

        copy = service.duplicate_survey(original.id)

        assert copy.id != original.id
        assert copy.code != original.code
        assert copy.name == "City Hall Approval (Copy)"
        assert copy.questions == original.questions

    def test_commit_failure_raises_persistence_error(self, service, survey_data, db_session):
        with patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("locked"))):
            with pytest.raises(PersistenceError):
                service.create_survey(survey_data)


class TestImportSurvey:
    """Tests for importing YAML definitions."""

    def test_import_bundled_definition(self, service):
        survey = service.import_survey("city_hall_approval")

        assert survey.name == "City Hall Approval"
        assert survey.code.startswith("CAMSP")
        assert len(survey.questions) == 3

    def test_import_missing_definition(self, service):
        with pytest.raises(SurveyDefinitionNotFoundError):
            service.import_survey("nope")


class TestQuestions:
    """Tests for question management inside a survey."""

    def test_get_questions(self, service, survey_data):
        survey = service.create_survey(survey_data)

        questions = service.get_questions(survey.id)

        assert questions[0].type == QuestionType.MULTIPLE_CHOICE
        assert questions[1].options is None

    def test_add_question_appends(self, service, survey_data):
        survey = service.create_survey(survey_data)

        question = service.add_question(survey.id, QuestionCreate(text="Age group", type="multiple_choice",
                                                                   options=["18-34", "35+"]))

        ids = [q.id for q in service.get_questions(survey.id)]
        assert ids[-1] == question.id
        assert len(ids) == 3

    def test_update_question_keeps_position(self, service, survey_data):
        survey = service.create_survey(survey_data)
        first_id = survey.questions[0]["id"]

        updated = service.update_question(survey.id, first_id, QuestionUpdate(text="Approve the mayor?"))

        questions = service.get_questions(survey.id)
        assert questions[0].id == first_id
        assert questions[0].text == "Approve the mayor?"
        assert updated.options == ["Yes", "No"]

    def test_switch_to_text_drops_options(self, service, survey_data):
        survey = service.create_survey(survey_data)
        first_id = survey.questions[0]["id"]

        updated = service.update_question(survey.id, first_id, QuestionUpdate(type="text"))

        assert updated.type == QuestionType.TEXT
        assert updated.options is None

    def test_switch_to_choice_without_options_invalid(self, service, survey_data):
        survey = service.create_survey(survey_data)
        text_id = survey.questions[1]["id"]

        with pytest.raises(SurveyValidationError):
            service.update_question(survey.id, text_id, QuestionUpdate(type="multiple_choice"))

    def test_update_missing_question(self, service, survey_data):
        survey = service.create_survey(survey_data)

        with pytest.raises(QuestionNotFoundError):
            service.update_question(survey.id, "missing", QuestionUpdate(text="x"))

    def test_delete_question(self, service, survey_data):
        survey = service.create_survey(survey_data)
        first_id = survey.questions[0]["id"]

        service.delete_question(survey.id, first_id)

        assert [q.text for q in service.get_questions(survey.id)] == ["Comments"]
        with pytest.raises(QuestionNotFoundError):
            service.delete_question(survey.id, first_id)
