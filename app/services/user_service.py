"""User and survey-assignment management."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.survey import Survey
from app.models.user import SurveyAssignment, User
from app.schemas.user import AssignmentStatus, UserCreate, UserRole, UserUpdate
from app.services.answer_store import PersistenceError
from app.services.survey_service import SurveyNotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)


class UserNotFoundError(Exception):
    """Raised when a user does not exist."""
    pass


class AssignmentNotFoundError(Exception):
    """Raised when an assignment does not exist."""
    pass


class UserConflictError(Exception):
    """Raised when a user would violate a uniqueness or role rule."""
    pass


class UserService:
    """Users, their roles and the surveys assigned to researchers."""

    def __init__(self, db: Session):
        self.db = db

    # Users

    def get_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"User '{user_id}' not found")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = User.get_by_email(self.db, email)
        if user is None:
            raise UserNotFoundError(f"No user with e-mail '{email}'")
        return user

    def list_users(self, role: Optional[UserRole] = None) -> list[User]:
        """All users ordered by name, optionally filtered by role."""
        query = select(User).order_by(User.name, User.id)
        if role is not None:
            query = query.where(User.role == role.value)
        return list(self.db.execute(query).scalars())

    def create_user(self, data: UserCreate) -> User:
        """Register a user.

        Raises:
            UserConflictError: If the e-mail is already registered
        """
        if User.get_by_email(self.db, data.email) is not None:
            raise UserConflictError(f"E-mail '{data.email}' is already registered")

        user = User(
            id=str(uuid.uuid4()),
            name=data.name,
            email=data.email,
            cpf=data.cpf,
            role=data.role.value,
            first_access=True,
        )
        self.db.add(user)
        self._commit(f"create user {data.email}")

        logger.info(f"Created {user.role} user {user.id}")
        return user

    def update_user(self, user_id: str, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True, mode="json")

        new_email = changes.get("email")
        if new_email and new_email != user.email:
            if User.get_by_email(self.db, new_email) is not None:
                raise UserConflictError(f"E-mail '{new_email}' is already registered")

        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)

        self._commit(f"update user {user_id}")
        logger.info(f"Updated user {user_id}: {sorted(changes)}")
        return user

    def delete_user(self, user_id: str) -> None:
        """Delete a user and their assignments. Their answers are kept."""
        user = self.get_user(user_id)
        self.db.delete(user)
        self._commit(f"delete user {user_id}")
        logger.info(f"Deleted user {user_id}")

    # Assignments

    def assign_survey(self, researcher_id: str, survey_id: str) -> SurveyAssignment:
        """Assign a survey to a researcher with status pending.

        Assigning the same survey twice returns the existing assignment.

        Raises:
            UserNotFoundError: If the researcher does not exist
            SurveyNotFoundError: If the survey does not exist
            UserConflictError: If the user is not a researcher
        """
        researcher = self.get_user(researcher_id)
        if not researcher.is_researcher:
            raise UserConflictError(f"User '{researcher_id}' is not a researcher")
        if self.db.get(Survey, survey_id) is None:
            raise SurveyNotFoundError(f"Survey '{survey_id}' not found")

        existing = self.db.execute(
            select(SurveyAssignment).where(
                SurveyAssignment.researcher_id == researcher_id,
                SurveyAssignment.survey_id == survey_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return existing

        assignment = SurveyAssignment(
            id=str(uuid.uuid4()),
            survey_id=survey_id,
            researcher_id=researcher_id,
            status=AssignmentStatus.PENDING.value,
        )
        self.db.add(assignment)
        self._commit(f"assign survey {survey_id}")

        logger.info(
            "Assigned survey to researcher",
            extra={"survey_id": survey_id, "researcher_id": researcher_id},
        )
        return assignment

    def list_assignments(self, researcher_id: str) -> list[SurveyAssignment]:
        """A researcher's assignments, most recent first."""
        self.get_user(researcher_id)
        return list(
            self.db.execute(
                select(SurveyAssignment)
                .where(SurveyAssignment.researcher_id == researcher_id)
                .order_by(SurveyAssignment.assigned_at.desc())
            ).scalars()
        )

    def update_assignment_status(self, assignment_id: str, status: AssignmentStatus) -> SurveyAssignment:
        assignment = self.db.get(SurveyAssignment, assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(f"Assignment '{assignment_id}' not found")

        assignment.mark_status(status.value)
        self._commit(f"update assignment {assignment_id}")

        logger.info(
            f"Assignment {assignment_id} is now {status.value}",
            extra={"survey_id": assignment.survey_id, "researcher_id": assignment.researcher_id},
        )
        return assignment

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Conflict while trying to {action}: {e}")
            raise UserConflictError(f"Could not {action}: conflicting record")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}")
