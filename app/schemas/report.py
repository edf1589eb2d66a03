"""Pydantic schemas for generated reports.

Row models describe one line of each report kind. Report data is stored as
plain JSON, so rows are dumped with ``model_dump(mode="json")`` before
they are persisted or exported.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReportType(str, Enum):
    """Kinds of report the engine can build."""
    VARIABLE = "variable"
    CROSS = "cross"
    SAMPLE = "sample"
    ITEM = "item"


class ExportFormat(str, Enum):
    """Supported export formats."""
    CSV = "csv"


class FrequencyRow(BaseModel):
    """Tally of one category value.

    Attributes:
        value: Category value (the answer text)
        count: Number of answers with this value
        percentage: Share of the group total, 0-100
    """
    value: str
    count: int
    percentage: float


class CrossRow(BaseModel):
    """One value of the first variable with the second variable's breakdown."""
    value: str
    total: int
    details: list[FrequencyRow]


class SampleRow(BaseModel):
    """Frequency table for one question."""
    question_id: str
    total: int
    details: list[FrequencyRow]


class ItemAnswer(BaseModel):
    """A raw answer listed under its question."""
    researcher_id: str
    answer: str
    created_at: datetime


class ItemRow(BaseModel):
    """All raw answers to one question."""
    question_id: str
    question_text: str
    answers: list[ItemAnswer]


class VariableReportRequest(BaseModel):
    """Request body for a single-variable report."""
    question_id: str = Field(..., min_length=1)


class CrossReportRequest(BaseModel):
    """Request body for a cross-tabulation.

    Exactly two variables are accepted; the engine rejects anything else.
    """
    variables: list[str] = Field(..., description="Question IDs to cross")


class ReportRead(BaseModel):
    """Report as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    survey_id: str
    type: ReportType
    parameters: dict[str, Any]
    created_at: datetime
    data: list[dict[str, Any]]
