"""Shared dependencies for route handlers.

The answer queue, its collaborators and the answer store are process-wide
singletons; services that work on a request's database session are built
per request.
"""

from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.database import SessionLocal, get_db
from app.services.answer_queue import OfflineAnswerQueue
from app.services.answer_store import AnswerStore
from app.services.connectivity import DatabaseConnectivityProbe
from app.services.local_storage import FileLocalStorage
from app.services.report_service import ReportService
from app.services.survey_service import SurveyService
from app.services.user_service import UserService

_answer_store: Optional[AnswerStore] = None
_connectivity: Optional[DatabaseConnectivityProbe] = None
_answer_queue: Optional[OfflineAnswerQueue] = None


def http_error(status_code: int, code: str, exc: Exception) -> HTTPException:
    """Build an HTTPException with a structured ``{"code", "message"}`` detail."""
    return HTTPException(status_code=status_code, detail={"code": code, "message": str(exc)})


def get_answer_store() -> AnswerStore:
    global _answer_store
    if _answer_store is None:
        _answer_store = AnswerStore(SessionLocal)
    return _answer_store


def get_connectivity() -> DatabaseConnectivityProbe:
    global _connectivity
    if _connectivity is None:
        _connectivity = DatabaseConnectivityProbe(SessionLocal)
    return _connectivity


def get_answer_queue() -> OfflineAnswerQueue:
    """Get the global answer queue, restoring pending answers on first use."""
    global _answer_queue
    if _answer_queue is None:
        settings = get_settings()
        _answer_queue = OfflineAnswerQueue(
            store=get_answer_store(),
            connectivity=get_connectivity(),
            storage=FileLocalStorage(settings.local_storage_dir),
            queue_key=settings.pending_queue_key,
            last_sync_key=settings.last_sync_key,
        )
        if settings.auto_sync_on_reconnect:
            _answer_queue.enable_auto_sync()
    return _answer_queue


def get_survey_service(db: Session = Depends(get_db)) -> SurveyService:
    return SurveyService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_report_service(
    db: Session = Depends(get_db),
    answer_store: AnswerStore = Depends(get_answer_store),
) -> ReportService:
    return ReportService(db, answer_store)
