"""Health check endpoint for monitoring and deployment verification.

The check doubles as the connectivity probe for the offline answer queue:
each call records whether the database answered, which can trigger an
automatic sync of pending answers.
"""

from fastapi import APIRouter, Depends, HTTPException

from app.routes.deps import get_answer_queue, get_connectivity
from app.services.answer_queue import OfflineAnswerQueue
from app.services.connectivity import DatabaseConnectivityProbe
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(
    connectivity: DatabaseConnectivityProbe = Depends(get_connectivity),
    queue: OfflineAnswerQueue = Depends(get_answer_queue),
) -> dict:
    """Health check endpoint.

    Verifies that the database answers and reports how many answers are
    waiting in the offline queue.

    Raises:
        HTTPException: If the database is unreachable (503 Service Unavailable)

    Example response:
        {
            "status": "healthy",
            "database": "connected",
            "pending_answers": 0
        }
    """
    if not connectivity.check():
        logger.error("Health check failed: database unreachable")
        raise HTTPException(
            status_code=503,
            detail={
                "code": "no_connection",
                "message": "Service unavailable - database connection failed",
                "pending_answers": queue.pending_count,
            },
        )

    logger.debug("Health check passed")
    return {
        "status": "healthy",
        "database": "connected",
        "pending_answers": queue.pending_count,
    }
