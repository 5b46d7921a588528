"""
In-process storage backend.

Plain dicts keyed by id. Data lives only as long as the process, and the
backend is only safe for a single process: uniqueness of applications is
checked here, but the services also serialize creation per key.
"""

from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from app.core.exceptions import DuplicateRecord
from app.db.storage import Storage
from app.models.entities import Application, ApplicationStatus, Job, Otp, Session, User

T = TypeVar("T")


def _newest_first(records: Iterable[T], key: Callable[[T], object]) -> List[T]:
    # Reverse first so equal timestamps keep the most recently inserted on top
    return sorted(reversed(list(records)), key=key, reverse=True)


class MemoryStorage(Storage):

    name = "memory"

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.otps: Dict[str, Otp] = {}
        self.jobs: Dict[str, Job] = {}
        self.applications: Dict[str, Application] = {}
        self.sessions: Dict[str, Session] = {}

    async def ping(self) -> bool:
        return True

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def create_user(self, user: User) -> User:
        if await self.get_user_by_email(user.email):
            raise DuplicateRecord(f"User with email {user.email} already exists")
        self.users[user.id] = user
        return user

    async def update_user(self, user_id: str, **changes) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update=changes)
        self.users[user_id] = updated
        return updated

    # OTP codes

    async def create_otp(self, otp: Otp) -> Otp:
        self.otps[otp.id] = otp
        return otp

    async def get_latest_otp_by_email(self, email: str) -> Optional[Otp]:
        matches = _newest_first(
            (o for o in self.otps.values() if o.email == email),
            key=lambda o: o.created_at
        )
        return matches[0] if matches else None

    async def delete_otp(self, otp_id: str) -> bool:
        return self.otps.pop(otp_id, None) is not None

    # Jobs

    async def create_job(self, job: Job) -> Job:
        self.jobs[job.id] = job
        return job

    async def get_job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    async def list_jobs(self) -> List[Job]:
        return _newest_first(self.jobs.values(), key=lambda j: j.created_at)

    async def list_jobs_by_admin(self, admin_id: str) -> List[Job]:
        return _newest_first(
            (j for j in self.jobs.values() if j.posted_by == admin_id),
            key=lambda j: j.created_at
        )

    # Applications

    async def create_application(self, application: Application) -> Application:
        if await self.get_application_by_job_and_student(application.job_id, application.student_id):
            raise DuplicateRecord("Application already exists for this job and student")
        self.applications[application.id] = application
        return application

    async def get_application(self, application_id: str) -> Optional[Application]:
        return self.applications.get(application_id)

    async def get_application_by_job_and_student(
        self, job_id: str, student_id: str
    ) -> Optional[Application]:
        return next(
            (a for a in self.applications.values()
             if a.job_id == job_id and a.student_id == student_id),
            None
        )

    async def list_applications_by_job(self, job_id: str) -> List[Application]:
        return _newest_first(
            (a for a in self.applications.values() if a.job_id == job_id),
            key=lambda a: a.applied_at
        )

    async def list_applications_by_student(self, student_id: str) -> List[Application]:
        return _newest_first(
            (a for a in self.applications.values() if a.student_id == student_id),
            key=lambda a: a.applied_at
        )

    async def update_application_status(
        self, application_id: str, status: ApplicationStatus
    ) -> Optional[Application]:
        application = self.applications.get(application_id)
        if application is None:
            return None
        updated = application.model_copy(update={"status": status})
        self.applications[application_id] = updated
        return updated

    # Sessions

    async def create_session(self, session: Session) -> Session:
        self.sessions[session.id] = session
        return session

    async def get_session(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    async def delete_session(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None
