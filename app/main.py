"""FastAPI application entry point for the Field Survey Service.

This module initializes the FastAPI application, sets up logging,
registers routers, and handles global exception handling.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.logging_config import setup_logging, get_logger
from app.models.database import init_db
from app.routes import answers, health, reports, surveys, users
from app.routes.deps import get_answer_queue, get_connectivity

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup:
    - Configure logging
    - Create missing tables
    - Probe the database and restore the offline answer queue

    Shutdown:
    - Stop automatic syncing and log the number of answers left pending
    """
    settings = get_settings()
    setup_logging()
    init_db()

    queue = get_answer_queue()
    get_connectivity().check()

    logger.info(
        f"Field Survey Service starting - "
        f"Environment: {settings.environment}, "
        f"Log Level: {settings.log_level}, "
        f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'configured'}, "
        f"Version: {settings.app_version}, "
        f"Pending answers: {queue.pending_count}"
    )

    yield

    queue.disable_auto_sync()
    logger.info(f"Field Survey Service shutting down ({queue.pending_count} answer(s) still pending)")


settings = get_settings()

app = FastAPI(
    title="Field Survey Service",
    description="Survey management, offline-tolerant answer collection and aggregate reports",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict:
    """Root endpoint with basic API information."""
    return {
        "service": "Field Survey Service",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "operational"
    }


# Register routers
app.include_router(health.router, tags=["Health"])
app.include_router(surveys.router, tags=["Surveys"])
app.include_router(users.router, tags=["Users"])
app.include_router(answers.router, tags=["Answers"])
app.include_router(reports.router, tags=["Reports"])


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions.

    Logs all unhandled exceptions and returns a generic error response
    to prevent leaking internal details.
    """
    logger.error(
        f"Unhandled exception for {request.method} {request.url}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )
