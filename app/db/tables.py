"""
SQL schema for the persistent backend.

Created by SqlStorage.init() via metadata.create_all. The unique constraint
on (job_id, student_id) backs the one-application-per-job rule across
processes.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", Text, nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("role", String(16), nullable=False),
    Column("is_verified", Boolean, nullable=False, default=False),
)

otp_codes = Table(
    "otp_codes",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", Text, nullable=False),
    Column("code", String(6), nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_otp_codes_email_created_at", "email", "created_at"),
)

jobs = Table(
    "jobs",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("title", Text, nullable=False),
    Column("company", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("requirements", Text, nullable=False),
    Column("deadline", DateTime(timezone=True), nullable=False),
    Column("posted_by", String(36), nullable=False, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

applications = Table(
    "applications",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("job_id", String(36), nullable=False, index=True),
    Column("student_id", String(36), nullable=False, index=True),
    Column("status", String(16), nullable=False, default="pending"),
    Column("applied_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("job_id", "student_id", name="uq_applications_job_student"),
)

sessions = Table(
    "sessions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("user_id", String(36), nullable=False, index=True),
    Column("role", String(16), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False),
)
