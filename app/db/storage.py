"""
Storage Contract

One async interface over the five record families (users, OTP codes, jobs,
applications, sessions). Two implementations satisfy it:

- MemoryStorage (app.db.memory): process-local dicts, lost on restart
- SqlStorage (app.db.postgres): PostgreSQL through SQLAlchemy

Rules every implementation follows:
- A missing record is None (or an empty list), never an exception
- Backend failures raise StorageUnavailable
- A rejected unique insert raises DuplicateRecord
- Lists and "latest" lookups are ordered newest first before any limit
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.models.entities import Application, ApplicationStatus, Job, Otp, Session, User


class Storage(ABC):

    name: str = "abstract"

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def init(self) -> None:
        """Prepare the backend (create tables, indexes). No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def ping(self) -> bool:
        ...

    # ============================================================
    # USERS
    # ============================================================

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create_user(self, user: User) -> User:
        ...

    @abstractmethod
    async def update_user(self, user_id: str, **changes) -> Optional[User]:
        """Apply a partial update; returns None when the user does not exist."""

    # ============================================================
    # OTP CODES
    # ============================================================

    @abstractmethod
    async def create_otp(self, otp: Otp) -> Otp:
        ...

    @abstractmethod
    async def get_latest_otp_by_email(self, email: str) -> Optional[Otp]:
        ...

    @abstractmethod
    async def delete_otp(self, otp_id: str) -> bool:
        """Remove a code; returns False when it was already gone."""

    # ============================================================
    # JOBS
    # ============================================================

    @abstractmethod
    async def create_job(self, job: Job) -> Job:
        ...

    @abstractmethod
    async def get_job(self, job_id: str) -> Optional[Job]:
        ...

    @abstractmethod
    async def list_jobs(self) -> List[Job]:
        ...

    @abstractmethod
    async def list_jobs_by_admin(self, admin_id: str) -> List[Job]:
        ...

    # ============================================================
    # APPLICATIONS
    # ============================================================

    @abstractmethod
    async def create_application(self, application: Application) -> Application:
        ...

    @abstractmethod
    async def get_application(self, application_id: str) -> Optional[Application]:
        ...

    @abstractmethod
    async def get_application_by_job_and_student(
        self, job_id: str, student_id: str
    ) -> Optional[Application]:
        ...

    @abstractmethod
    async def list_applications_by_job(self, job_id: str) -> List[Application]:
        ...

    @abstractmethod
    async def list_applications_by_student(self, student_id: str) -> List[Application]:
        ...

    @abstractmethod
    async def update_application_status(
        self, application_id: str, status: ApplicationStatus
    ) -> Optional[Application]:
        ...

    # ============================================================
    # SESSIONS
    # ============================================================

    @abstractmethod
    async def create_session(self, session: Session) -> Session:
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        """Remove a session; returns False when there was nothing to remove."""
