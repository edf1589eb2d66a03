"""Pydantic schemas for users and survey assignments."""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserRole(str, Enum):
    """Roles a user can hold."""
    ADMIN = "admin"
    RESEARCHER = "researcher"


class AssignmentStatus(str, Enum):
    """Progress of a researcher on an assigned survey."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid e-mail address")
    return v


def _normalize_cpf(v: str) -> str:
    digits = re.sub(r"\D", "", v)
    if len(digits) != 11:
        raise ValueError("CPF must have 11 digits")
    return digits


class UserCreate(BaseModel):
    """Payload for registering a user.

    Attributes:
        name: Full name
        email: E-mail address (normalized to lower case)
        cpf: Taxpayer ID (punctuation stripped, 11 digits)
        role: admin or researcher
    """
    name: str = Field(..., min_length=1, max_length=200)
    email: str
    cpf: str
    role: UserRole = UserRole.RESEARCHER

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("cpf")
    @classmethod
    def cpf_digits(cls, v: str) -> str:
        return _normalize_cpf(v)


class UserUpdate(BaseModel):
    """Partial user update; omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    cpf: Optional[str] = None
    role: Optional[UserRole] = None
    first_access: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def email_valid(cls, v):
        return None if v is None else _normalize_email(v)

    @field_validator("cpf")
    @classmethod
    def cpf_digits(cls, v):
        return None if v is None else _normalize_cpf(v)


class UserRead(BaseModel):
    """User as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    cpf: str
    role: UserRole
    first_access: bool
    created_at: datetime


class AssignmentCreate(BaseModel):
    """Payload for assigning a survey to a researcher."""
    survey_id: str = Field(..., min_length=1)


class AssignmentUpdate(BaseModel):
    """Payload for moving an assignment to a new status."""
    status: AssignmentStatus


class AssignmentRead(BaseModel):
    """Assignment as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    survey_id: str
    researcher_id: str
    status: AssignmentStatus
    assigned_at: datetime
    completed_at: Optional[datetime] = None
