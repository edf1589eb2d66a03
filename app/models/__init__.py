"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from app.models.database import Base, engine, SessionLocal, get_db, init_db
from app.models.survey import Survey
from app.models.answer import Answer
from app.models.report import Report
from app.models.user import User, SurveyAssignment

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "Survey",
    "Answer",
    "Report",
    "User",
    "SurveyAssignment",
]
