"""Routes package for FastAPI endpoints.

This package contains all API route modules for the Field Survey Service.
"""

from app.routes import answers, health, reports, surveys, users

__all__ = ["answers", "health", "reports", "surveys", "users"]
