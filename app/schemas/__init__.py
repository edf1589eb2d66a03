"""Pydantic schemas for data validation.

This package contains all Pydantic models for surveys, answers, reports
and users.
"""

from app.schemas.survey import (
    QuestionType,
    ManagerTitle,
    CurrentManager,
    QuestionCreate,
    QuestionUpdate,
    Question,
    SurveyCreate,
    SurveyUpdate,
    SurveyRead,
    SurveyDefinition,
)
from app.schemas.answer import (
    AnswerCreate,
    AnswerRecord,
    SubmitStatus,
    SubmitResponse,
    SyncResponse,
    PendingQueueStatus,
)
from app.schemas.report import (
    ReportType,
    ExportFormat,
    FrequencyRow,
    CrossRow,
    SampleRow,
    ItemAnswer,
    ItemRow,
    VariableReportRequest,
    CrossReportRequest,
    ReportRead,
)
from app.schemas.user import (
    UserRole,
    AssignmentStatus,
    UserCreate,
    UserUpdate,
    UserRead,
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentRead,
)

__all__ = [
    "QuestionType",
    "ManagerTitle",
    "CurrentManager",
    "QuestionCreate",
    "QuestionUpdate",
    "Question",
    "SurveyCreate",
    "SurveyUpdate",
    "SurveyRead",
    "SurveyDefinition",
    "AnswerCreate",
    "AnswerRecord",
    "SubmitStatus",
    "SubmitResponse",
    "SyncResponse",
    "PendingQueueStatus",
    "ReportType",
    "ExportFormat",
    "FrequencyRow",
    "CrossRow",
    "SampleRow",
    "ItemAnswer",
    "ItemRow",
    "VariableReportRequest",
    "CrossReportRequest",
    "ReportRead",
    "UserRole",
    "AssignmentStatus",
    "UserCreate",
    "UserUpdate",
    "UserRead",
    "AssignmentCreate",
    "AssignmentUpdate",
    "AssignmentRead",
]
