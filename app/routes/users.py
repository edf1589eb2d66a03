"""User and assignment endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from app.routes.deps import get_user_service, http_error
from app.schemas.user import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentUpdate,
    UserCreate,
    UserRead,
    UserRole,
    UserUpdate,
)
from app.services.answer_store import PersistenceError
from app.services.survey_service import SurveyNotFoundError
from app.services.user_service import (
    AssignmentNotFoundError,
    UserConflictError,
    UserNotFoundError,
    UserService,
)

router = APIRouter(prefix="/api")


@router.get("/users", response_model=list[UserRead])
def list_users(role: Optional[UserRole] = None, service: UserService = Depends(get_user_service)):
    """List users, optionally only admins or only researchers."""
    return service.list_users(role)


@router.post("/users", response_model=UserRead, status_code=201)
def create_user(data: UserCreate, service: UserService = Depends(get_user_service)):
    try:
        return service.create_user(data)
    except UserConflictError as e:
        raise http_error(409, "conflict", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.get("/users/{user_id}", response_model=UserRead)
def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    try:
        return service.get_user(user_id)
    except UserNotFoundError as e:
        raise http_error(404, "not_found", e)


@router.patch("/users/{user_id}", response_model=UserRead)
def update_user(user_id: str, data: UserUpdate, service: UserService = Depends(get_user_service)):
    try:
        return service.update_user(user_id, data)
    except UserNotFoundError as e:
        raise http_error(404, "not_found", e)
    except UserConflictError as e:
        raise http_error(409, "conflict", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: str, service: UserService = Depends(get_user_service)) -> Response:
    try:
        service.delete_user(user_id)
    except UserNotFoundError as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)
    return Response(status_code=204)


@router.post("/users/{user_id}/assignments", response_model=AssignmentRead, status_code=201)
def assign_survey(
    user_id: str,
    data: AssignmentCreate,
    service: UserService = Depends(get_user_service),
):
    """Assign a survey to a researcher."""
    try:
        return service.assign_survey(user_id, data.survey_id)
    except (UserNotFoundError, SurveyNotFoundError) as e:
        raise http_error(404, "not_found", e)
    except UserConflictError as e:
        raise http_error(409, "conflict", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.get("/users/{user_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(user_id: str, service: UserService = Depends(get_user_service)):
    try:
        return service.list_assignments(user_id)
    except UserNotFoundError as e:
        raise http_error(404, "not_found", e)


@router.patch("/assignments/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: str,
    data: AssignmentUpdate,
    service: UserService = Depends(get_user_service),
):
    """Move an assignment to pending, in_progress or completed."""
    try:
        return service.update_assignment_status(assignment_id, data.status)
    except AssignmentNotFoundError as e:
        raise http_error(404, "not_found", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)
