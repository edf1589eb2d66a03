"""Pydantic schemas for surveys and their questions.

These schemas validate survey payloads coming in over the API and survey
definitions loaded from YAML files, and shape survey data going back out.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum


class QuestionType(str, Enum):
    """Valid question types."""
    TEXT = "text"
    MULTIPLE_CHOICE = "multiple_choice"


class ManagerTitle(str, Enum):
    """Title of the office holder a survey is about."""
    PREFEITO = "Prefeito"
    PREFEITA = "Prefeita"
    GOVERNADOR = "Governador"
    GOVERNADORA = "Governadora"
    PRESIDENTE = "Presidente"
    PRESIDENTA = "Presidenta"


class CurrentManager(BaseModel):
    """Incumbent office holder.

    Attributes:
        type: Office title (e.g. "Prefeito")
        name: Incumbent's name
    """
    type: ManagerTitle = Field(..., description="Office title")
    name: str = Field(..., min_length=1, description="Incumbent name")


def _clean_options(options: Optional[list[str]]) -> Optional[list[str]]:
    if options is None:
        return None
    cleaned = [option.strip() for option in options if option and option.strip()]
    if len(cleaned) != len(set(cleaned)):
        raise ValueError("Options must be unique")
    return cleaned


class QuestionBase(BaseModel):
    """Fields shared by question payloads.

    Attributes:
        text: Question text shown to the respondent
        type: text or multiple_choice
        options: Choice labels (multiple_choice only)
        required: Whether an answer is mandatory
    """
    text: str = Field(..., min_length=1, description="Question text")
    type: QuestionType = Field(default=QuestionType.TEXT, description="Question type")
    options: Optional[list[str]] = Field(None, description="Choice labels")
    required: bool = Field(default=False, description="Answer is mandatory")

    @field_validator("options")
    @classmethod
    def options_clean(cls, v):
        """Strip blank options and reject duplicates."""
        return _clean_options(v)

    @model_validator(mode="after")
    def validate_options_for_type(self):
        """Multiple-choice questions need options; text questions must not have any."""
        if self.type == QuestionType.MULTIPLE_CHOICE:
            if not self.options:
                raise ValueError("Multiple choice questions must have at least one option")
        elif self.options:
            raise ValueError("Only multiple choice questions can have options")
        return self


class QuestionCreate(QuestionBase):
    """Payload for adding a question to a survey."""
    pass


class QuestionUpdate(BaseModel):
    """Partial question update; omitted fields are left unchanged."""
    text: Optional[str] = Field(None, min_length=1)
    type: Optional[QuestionType] = None
    options: Optional[list[str]] = None
    required: Optional[bool] = None

    @field_validator("options")
    @classmethod
    def options_clean(cls, v):
        return _clean_options(v)


class Question(QuestionBase):
    """A question embedded in a survey."""
    id: str = Field(..., min_length=1, description="Question identifier")


class SurveyBase(BaseModel):
    """Descriptive survey fields.

    Attributes:
        name: Survey name
        city: City where fieldwork happens
        state: State name or abbreviation
        date: Fieldwork date (YYYY-MM-DD)
        contractor: Who commissioned the survey
        current_manager: Incumbent office holder
    """
    name: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=50)
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Fieldwork date")
    contractor: str = Field(..., min_length=1, max_length=200)
    current_manager: CurrentManager


class SurveyCreate(SurveyBase):
    """Payload for creating a survey (code and IDs are generated)."""
    questions: list[QuestionCreate] = Field(default_factory=list)


class SurveyUpdate(BaseModel):
    """Partial survey update; omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=50)
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    contractor: Optional[str] = Field(None, min_length=1, max_length=200)
    current_manager: Optional[CurrentManager] = None


class SurveyRead(SurveyBase):
    """Survey as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    questions: list[Question]
    created_at: datetime
    updated_at: datetime


class SurveyDefinition(SurveyCreate):
    """Survey definition loaded from a YAML file.

    Same shape as SurveyCreate, with an optional identifier that must match
    the file name when present.
    """
    id: Optional[str] = Field(None, description="Definition identifier (file stem)")

    @field_validator("id")
    @classmethod
    def id_alphanumeric(cls, v):
        """Ensure ID is alphanumeric with underscores/hyphens only."""
        if v is not None and not v.replace("_", "").replace("-", "").isalnum():
            raise ValueError("Survey definition ID must be alphanumeric with underscores/hyphens")
        return v
