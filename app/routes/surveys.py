"""Survey and question management endpoints."""

from fastapi import APIRouter, Depends, Response

from app.routes.deps import get_survey_service, http_error
from app.schemas.survey import (
    Question,
    QuestionCreate,
    QuestionUpdate,
    SurveyCreate,
    SurveyRead,
    SurveyUpdate,
)
from app.services.answer_store import PersistenceError
from app.services.survey_loader import SurveyDefinitionNotFoundError, SurveyValidationError
from app.services.survey_service import (
    QuestionNotFoundError,
    SurveyNotFoundError,
    SurveyService,
)

router = APIRouter(prefix="/api/surveys")


@router.get("", response_model=list[SurveyRead])
def list_surveys(service: SurveyService = Depends(get_survey_service)):
    """List surveys, newest first."""
    return service.list_surveys()


@router.post("", response_model=SurveyRead, status_code=201)
def create_survey(data: SurveyCreate, service: SurveyService = Depends(get_survey_service)):
    """Create a survey; its code is generated from city, state and time."""
    try:
        return service.create_survey(data)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.post("/import/{definition_id}", response_model=SurveyRead, status_code=201)
def import_survey(definition_id: str, service: SurveyService = Depends(get_survey_service)):
    """Create a survey from a YAML definition in the surveys directory."""
    try:
        return service.import_survey(definition_id)
    except SurveyDefinitionNotFoundError as e:
        raise http_error(404, "not_found", e)
    except SurveyValidationError as e:
        raise http_error(422, "validation_failure", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.get("/{survey_id}", response_model=SurveyRead)
def get_survey(survey_id: str, service: SurveyService = Depends(get_survey_service)):
    try:
        return service.get_survey(survey_id)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)


@router.patch("/{survey_id}", response_model=SurveyRead)
def update_survey(
    survey_id: str,
    data: SurveyUpdate,
    service: SurveyService = Depends(get_survey_service),
):
    try:
        return service.update_survey(survey_id, data)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.delete("/{survey_id}", status_code=204)
def delete_survey(survey_id: str, service: SurveyService = Depends(get_survey_service)) -> Response:
    try:
        service.delete_survey(survey_id)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)
    return Response(status_code=204)


@router.post("/{survey_id}/duplicate", response_model=SurveyRead, status_code=201)
def duplicate_survey(survey_id: str, service: SurveyService = Depends(get_survey_service)):
    """Copy a survey with its questions under a new code."""
    try:
        return service.duplicate_survey(survey_id)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.post("/{survey_id}/questions", response_model=Question, status_code=201)
def add_question(
    survey_id: str,
    data: QuestionCreate,
    service: SurveyService = Depends(get_survey_service),
):
    """Append a question to the survey."""
    try:
        return service.add_question(survey_id, data)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.patch("/{survey_id}/questions/{question_id}", response_model=Question)
def update_question(
    survey_id: str,
    question_id: str,
    data: QuestionUpdate,
    service: SurveyService = Depends(get_survey_service),
):
    try:
        return service.update_question(survey_id, question_id, data)
    except (SurveyNotFoundError, QuestionNotFoundError) as e:
        raise http_error(404, "not_found", e)
    except SurveyValidationError as e:
        raise http_error(422, "validation_failure", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.delete("/{survey_id}/questions/{question_id}", status_code=204)
def delete_question(
    survey_id: str,
    question_id: str,
    service: SurveyService = Depends(get_survey_service),
) -> Response:
    try:
        service.delete_question(survey_id, question_id)
    except (SurveyNotFoundError, QuestionNotFoundError) as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)
    return Response(status_code=204)
