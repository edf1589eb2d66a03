"""Pydantic schemas for answers and the offline answer queue."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnswerCreate(BaseModel):
    """A researcher's answer to one question, before an ID is assigned.

    Attributes:
        survey_id: Survey being filled out
        question_id: Question being answered
        researcher_id: Researcher who collected the answer
        answer: Answer text
    """
    survey_id: str = Field(..., min_length=1)
    question_id: str = Field(..., min_length=1)
    researcher_id: str = Field(..., min_length=1)
    answer: str = Field(..., description="Answer text")

    @field_validator("answer")
    @classmethod
    def strip_answer(cls, v: str) -> str:
        """Trim surrounding whitespace so identical answers tally together."""
        return v.strip()


class AnswerRecord(AnswerCreate):
    """An answer with its identity assigned.

    Pending answers in the offline queue and stored answers share this shape.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    created_at: datetime


class SubmitStatus(str, Enum):
    """Which path a submitted answer took."""
    DELIVERED = "delivered"
    QUEUED_OFFLINE = "queued_offline"
    FAILED = "failed"


class SubmitResponse(BaseModel):
    """Result of submitting one answer."""
    status: SubmitStatus
    answer: AnswerRecord
    reason: Optional[str] = None


class SyncResponse(BaseModel):
    """Result of flushing the pending queue."""
    synced: int
    pending: int
    last_sync_time: Optional[datetime] = None


class PendingQueueStatus(BaseModel):
    """Snapshot of the offline queue."""
    online: bool
    pending: int
    last_sync_time: Optional[datetime] = None
    answers: list[AnswerRecord] = Field(default_factory=list)
