"""
Models module - Pydantic models for the domain records.

These models are used for:
- Values passed between services and storage backends
- Response serialization (camelCase aliases)
"""

from app.models.entities import (
    Application,
    ApplicationStatus,
    Job,
    Otp,
    Session,
    User,
    UserRole,
    new_id,
    utcnow,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "Job",
    "Otp",
    "Session",
    "User",
    "UserRole",
    "new_id",
    "utcnow",
]
