"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("AUTO_SYNC_ON_RECONNECT", "false")
os.environ.setdefault("SURVEYS_DIR", str(Path(__file__).resolve().parents[1] / "surveys"))
os.environ.setdefault("LOCAL_STORAGE_DIR", tempfile.mkdtemp(prefix="survey-local-storage-"))

from app.models.database import Base
from app.models import answer, report, survey, user  # noqa: F401  (register tables)
from app.services.answer_store import AnswerStore
from app.services.connectivity import ConnectivityMonitor
from app.services.local_storage import InMemoryLocalStorage


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        StaticPool keeps one connection so sessions opened from other
        threads (TestClient, the answer store) see the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    """Session factory bound to the test engine."""
    return sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session.

    Note:
        Session is rolled back after each test to ensure isolation.
    """
    session = session_factory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def answer_store(session_factory) -> AnswerStore:
    """Answer store on the test database."""
    return AnswerStore(session_factory)


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    """Connectivity monitor that starts online."""
    return ConnectivityMonitor(online=True)


@pytest.fixture
def local_storage() -> InMemoryLocalStorage:
    """Empty in-memory local storage."""
    return InMemoryLocalStorage()


@pytest.fixture
def sample_survey(db_session):
    """A stored survey with one text and two multiple-choice questions."""
    from app.models.survey import Survey

    survey = Survey(
        id="survey-1",
        name="City Hall Approval",
        city="Campinas",
        state="SP",
        date="2024-09-01",
        contractor="Instituto Exemplo",
        code="CAMSP000001",
        current_manager={"type": "Prefeito", "name": "Joao Silva"},
        questions=[
            {"id": "Q1", "text": "Do you approve?", "type": "multiple_choice",
             "options": ["Yes", "No"], "required": True},
            {"id": "Q2", "text": "Age group", "type": "multiple_choice",
             "options": ["18-34", "35+"], "required": True},
            {"id": "Q3", "text": "Comments", "type": "text", "options": None, "required": False},
        ],
    )
    db_session.add(survey)
    db_session.commit()
    return survey

