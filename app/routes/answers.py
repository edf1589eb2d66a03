"""Answer submission and offline-queue endpoints.

Submissions never fail because the database is down: the answer is queued
on local storage instead and the response says which path it took.
"""

from fastapi import APIRouter, Depends, Response

from app.routes.deps import get_answer_queue, get_answer_store, get_connectivity, http_error
from app.schemas.answer import (
    AnswerCreate,
    AnswerRecord,
    PendingQueueStatus,
    SubmitResponse,
    SubmitStatus,
    SyncResponse,
)
from app.services.answer_queue import NoConnectionError, OfflineAnswerQueue
from app.services.answer_store import AnswerStore, PersistenceError
from app.services.connectivity import DatabaseConnectivityProbe
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

# HTTP status per submit path
SUBMIT_STATUS_CODES = {
    SubmitStatus.DELIVERED: 201,
    SubmitStatus.QUEUED_OFFLINE: 202,
    SubmitStatus.FAILED: 503,
}


@router.post("/answers", response_model=SubmitResponse)
def submit_answer(
    data: AnswerCreate,
    response: Response,
    queue: OfflineAnswerQueue = Depends(get_answer_queue),
) -> SubmitResponse:
    """Submit one answer.

    Returns 201 when stored, 202 when queued for a later sync, and 503 when
    the answer could not be stored or queued (the client should retry).
    """
    outcome = queue.submit_answer(data)
    response.status_code = SUBMIT_STATUS_CODES[outcome.status]

    if not outcome.delivered:
        logger.info(
            f"Answer {outcome.answer.id} not delivered: {outcome.status.value}",
            extra={"survey_id": data.survey_id, "researcher_id": data.researcher_id},
        )

    return SubmitResponse(status=outcome.status, answer=outcome.answer, reason=outcome.reason)


@router.get("/surveys/{survey_id}/answers", response_model=list[AnswerRecord])
def list_answers(survey_id: str, store: AnswerStore = Depends(get_answer_store)):
    """All stored answers for a survey in capture order."""
    try:
        return store.list_answers(survey_id)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.get("/answers/pending", response_model=PendingQueueStatus)
def pending_answers(
    queue: OfflineAnswerQueue = Depends(get_answer_queue),
    connectivity: DatabaseConnectivityProbe = Depends(get_connectivity),
) -> PendingQueueStatus:
    """What is waiting in the offline queue."""
    answers = queue.pending_answers
    return PendingQueueStatus(
        online=connectivity.is_online,
        pending=len(answers),
        last_sync_time=queue.last_sync_time,
        answers=answers,
    )


@router.post("/answers/sync", response_model=SyncResponse)
def sync_answers(queue: OfflineAnswerQueue = Depends(get_answer_queue)) -> SyncResponse:
    """Flush the offline queue to the database in one batch.

    Connectivity is re-checked first, so a database that came back since the
    last check is picked up and its answers are counted here.

    Raises:
        HTTPException: 503 when the database is unreachable, 502 when the
            batch write fails; the queue is unchanged in both cases
    """
    try:
        result = queue.sync_pending_answers(refresh=True)
    except NoConnectionError as e:
        raise http_error(503, "no_connection", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)

    return SyncResponse(
        synced=result.synced,
        pending=result.remaining,
        last_sync_time=result.synced_at,
    )
