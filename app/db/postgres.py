"""
PostgreSQL storage backend (SQLAlchemy Core).

Any SQLAlchemy URL works; production points at PostgreSQL, the test suite
at in-memory SQLite. SQLAlchemy calls block, so every contract method runs
its statements in the threadpool.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import create_engine, delete, insert, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DbSession, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import DuplicateRecord, StorageUnavailable
from app.db import tables
from app.db.storage import Storage
from app.models.entities import Application, ApplicationStatus, Job, Otp, Session, User

logger = logging.getLogger(__name__)

_USER_COLUMNS = {"name", "role", "is_verified"}


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with a connection pool.

    pool_size=5: maintain 5 connections ready
    max_overflow=10: allow 10 extra connections under load
    SQLite (tests, local runs) is used from threadpool threads; an in-memory
    database only exists on its one connection, so that one is shared.
    """
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return create_engine(url, **options)
    return create_engine(url, pool_size=5, max_overflow=10, pool_pre_ping=True, echo=echo)


def _values(record) -> Dict[str, Any]:
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in record.model_dump().items()
    }


class SqlStorage(Storage):

    name = "postgres"

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @contextmanager
    def get_db_session(self):
        """
        Context manager for database sessions.
        Usage:
            with self.get_db_session() as db:
                db.execute(select(tables.users))
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def _run(self, operation: Callable[[DbSession], Any]) -> Any:
        def work():
            with self.get_db_session() as db:
                return operation(db)

        try:
            return await run_in_threadpool(work)
        except IntegrityError as e:
            logger.info("Unique constraint rejected write: %s", e.orig)
            raise DuplicateRecord() from e
        except SQLAlchemyError as e:
            logger.error("Storage operation failed: %s", e)
            raise StorageUnavailable() from e

    async def _fetch_one(self, model, statement):
        def operation(db: DbSession):
            row = db.execute(statement).mappings().first()
            return model.model_validate(dict(row)) if row else None
        return await self._run(operation)

    async def _fetch_all(self, model, statement) -> list:
        def operation(db: DbSession):
            return [model.model_validate(dict(row)) for row in db.execute(statement).mappings()]
        return await self._run(operation)

    async def _insert(self, table, record):
        await self._run(lambda db: db.execute(insert(table).values(**_values(record))))
        return record

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def init(self) -> None:
        try:
            await run_in_threadpool(tables.metadata.create_all, self.engine)
        except SQLAlchemyError as e:
            logger.error("Could not create schema: %s", e)
            raise StorageUnavailable() from e

    async def close(self) -> None:
        await run_in_threadpool(self.engine.dispose)

    async def ping(self) -> bool:
        """Returns True if the database answers SELECT 1."""
        try:
            result = await self._run(lambda db: db.execute(text("SELECT 1")).scalar())
            return result == 1
        except StorageUnavailable:
            return False

    # ============================================================
    # USERS
    # ============================================================

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._fetch_one(User, select(tables.users).where(tables.users.c.id == user_id))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._fetch_one(User, select(tables.users).where(tables.users.c.email == email))

    async def create_user(self, user: User) -> User:
        return await self._insert(tables.users, user)

    async def update_user(self, user_id: str, **changes) -> Optional[User]:
        unknown = set(changes) - _USER_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")
        values = {k: v.value if isinstance(v, Enum) else v for k, v in changes.items()}

        def operation(db: DbSession):
            result = db.execute(
                update(tables.users).where(tables.users.c.id == user_id).values(**values)
            )
            if result.rowcount == 0:
                return None
            row = db.execute(
                select(tables.users).where(tables.users.c.id == user_id)
            ).mappings().first()
            return User.model_validate(dict(row))

        return await self._run(operation)

    # ============================================================
    # OTP CODES
    # ============================================================

    async def create_otp(self, otp: Otp) -> Otp:
        return await self._insert(tables.otp_codes, otp)

    async def get_latest_otp_by_email(self, email: str) -> Optional[Otp]:
        statement = (
            select(tables.otp_codes)
            .where(tables.otp_codes.c.email == email)
            .order_by(tables.otp_codes.c.created_at.desc())
            .limit(1)
        )
        return await self._fetch_one(Otp, statement)

    async def delete_otp(self, otp_id: str) -> bool:
        def operation(db: DbSession):
            result = db.execute(delete(tables.otp_codes).where(tables.otp_codes.c.id == otp_id))
            return result.rowcount > 0
        return await self._run(operation)

    # ============================================================
    # JOBS
    # ============================================================

    async def create_job(self, job: Job) -> Job:
        return await self._insert(tables.jobs, job)

    async def get_job(self, job_id: str) -> Optional[Job]:
        return await self._fetch_one(Job, select(tables.jobs).where(tables.jobs.c.id == job_id))

    async def list_jobs(self) -> List[Job]:
        return await self._fetch_all(
            Job, select(tables.jobs).order_by(tables.jobs.c.created_at.desc())
        )

    async def list_jobs_by_admin(self, admin_id: str) -> List[Job]:
        statement = (
            select(tables.jobs)
            .where(tables.jobs.c.posted_by == admin_id)
            .order_by(tables.jobs.c.created_at.desc())
        )
        return await self._fetch_all(Job, statement)

    # ============================================================
    # APPLICATIONS
    # ============================================================

    async def create_application(self, application: Application) -> Application:
        return await self._insert(tables.applications, application)

    async def get_application(self, application_id: str) -> Optional[Application]:
        return await self._fetch_one(
            Application,
            select(tables.applications).where(tables.applications.c.id == application_id)
        )

    async def get_application_by_job_and_student(
        self, job_id: str, student_id: str
    ) -> Optional[Application]:
        statement = select(tables.applications).where(
            tables.applications.c.job_id == job_id,
            tables.applications.c.student_id == student_id
        )
        return await self._fetch_one(Application, statement)

    async def list_applications_by_job(self, job_id: str) -> List[Application]:
        statement = (
            select(tables.applications)
            .where(tables.applications.c.job_id == job_id)
            .order_by(tables.applications.c.applied_at.desc())
        )
        return await self._fetch_all(Application, statement)

    async def list_applications_by_student(self, student_id: str) -> List[Application]:
        statement = (
            select(tables.applications)
            .where(tables.applications.c.student_id == student_id)
            .order_by(tables.applications.c.applied_at.desc())
        )
        return await self._fetch_all(Application, statement)

    async def update_application_status(
        self, application_id: str, status: ApplicationStatus
    ) -> Optional[Application]:
        def operation(db: DbSession):
            result = db.execute(
                update(tables.applications)
                .where(tables.applications.c.id == application_id)
                .values(status=ApplicationStatus(status).value)
            )
            if result.rowcount == 0:
                return None
            row = db.execute(
                select(tables.applications).where(tables.applications.c.id == application_id)
            ).mappings().first()
            return Application.model_validate(dict(row))

        return await self._run(operation)

    # ============================================================
    # SESSIONS
    # ============================================================

    async def create_session(self, session: Session) -> Session:
        return await self._insert(tables.sessions, session)

    async def get_session(self, session_id: str) -> Optional[Session]:
        return await self._fetch_one(
            Session, select(tables.sessions).where(tables.sessions.c.id == session_id)
        )

    async def delete_session(self, session_id: str) -> bool:
        def operation(db: DbSession):
            result = db.execute(delete(tables.sessions).where(tables.sessions.c.id == session_id))
            return result.rowcount > 0
        return await self._run(operation)
