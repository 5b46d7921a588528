"""
Domain records shared by the services and both storage backends.

Field names are snake_case in Python; the camelCase aliases are what the
HTTP API and the web client speak.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: datetime) -> datetime:
    """Interpret naive timestamps (as some drivers return them) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UserRole(str, Enum):
    student = "student"
    admin = "admin"


class ApplicationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_timestamps(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value


class User(Record):
    id: str = Field(default_factory=new_id)
    email: str
    name: str
    role: UserRole
    is_verified: bool = False


class Otp(Record):
    id: str = Field(default_factory=new_id)
    email: str
    code: str
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at


class Job(Record):
    id: str = Field(default_factory=new_id)
    title: str
    company: str
    location: str
    description: str
    requirements: str
    deadline: datetime
    posted_by: str
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def requirement_tags(self) -> List[str]:
        """Comma separated requirements as discrete tags."""
        return [tag.strip() for tag in self.requirements.split(",") if tag.strip()]

    def is_closed(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.deadline


class Application(Record):
    id: str = Field(default_factory=new_id)
    job_id: str
    student_id: str
    status: ApplicationStatus = ApplicationStatus.pending
    applied_at: datetime = Field(default_factory=utcnow)

    @property
    def is_decided(self) -> bool:
        return self.status != ApplicationStatus.pending


class Session(Record):
    """Server-side session, resolved once per request and passed explicitly."""
    id: str
    user_id: str
    role: UserRole
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at
