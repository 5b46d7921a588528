"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
The wire format is camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.entities import Application, Job, User, UserRole, as_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# ENUMS
# ============================================================

class DecisionStatus(str, Enum):
    accepted = "accepted"
    declined = "declined"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class SendOtpRequest(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name must not be blank")
        return value


class VerifyOtpRequest(SendOtpRequest):
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class SendOtpResponse(CamelModel):
    success: bool = True
    message: str
    dev_otp: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class VerifyOtpResponse(CamelModel):
    success: bool = True
    user: UserResponse


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    company: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    requirements: str = Field(..., min_length=1)
    deadline: datetime

    @field_validator("deadline")
    @classmethod
    def deadline_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class JobResponse(CamelModel):
    id: str
    title: str
    company: str
    location: str
    description: str
    requirements: str
    requirement_tags: List[str] = []
    deadline: datetime
    posted_by: str
    created_at: datetime

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(**job.model_dump(), requirement_tags=job.requirement_tags)


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(CamelModel):
    job_id: str = Field(..., min_length=1)


class ApplicationStatusUpdate(CamelModel):
    status: DecisionStatus


class ApplicationResponse(CamelModel):
    id: str
    job_id: str
    student_id: str
    status: str
    applied_at: datetime

    @classmethod
    def from_application(cls, application: Application, **extra) -> "ApplicationResponse":
        return cls(
            id=application.id,
            job_id=application.job_id,
            student_id=application.student_id,
            status=application.status.value,
            applied_at=application.applied_at,
            **extra
        )


class ApplicationWithJobResponse(ApplicationResponse):
    job: Optional[JobResponse] = None


class ApplicationWithStudentResponse(ApplicationResponse):
    student: Optional[UserResponse] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class SuccessResponse(CamelModel):
    success: bool = True


class ErrorResponse(BaseModel):
    detail: str


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: Dict[str, str] = {}
