"""
Application Service - the application lifecycle.

    pending --accept--> accepted
    pending --decline-> declined

Only students apply, once per job. Only the admin who posted the job may
decide, and a decided application stays decided.

Emails go out after the state change and never affect the result: pass
FastAPI's BackgroundTasks to send them after the response, or omit it to
send inline. Either way a failed email is logged and dropped.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from fastapi import BackgroundTasks

from app.core.config import Settings
from app.core.exceptions import (
    AlreadyApplied,
    ApplicationNotFound,
    ApplicationsClosed,
    DuplicateRecord,
    Forbidden,
    InvalidTransition,
    JobNotFound,
    ValidationFailed,
)
from app.core.locks import KeyedLock
from app.db.storage import Storage
from app.models.entities import Application, ApplicationStatus, Job, User, utcnow
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

# Serializes apply per (job, student) and decisions per application
_locks = KeyedLock()


class ApplicationService:

    def __init__(
        self,
        storage: Storage,
        email_service: EmailService,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
        locks: Optional[KeyedLock] = None
    ):
        self.storage = storage
        self.email_service = email_service
        self.settings = settings
        self.clock = clock
        self.locks = _locks if locks is None else locks

    # ============================================================
    # APPLY
    # ============================================================

    async def apply(
        self,
        student_id: str,
        job_id: str,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Application:
        job = await self.storage.get_job(job_id)
        if job is None:
            raise JobNotFound()

        if self.settings.enforce_application_deadline and job.is_closed(self.clock()):
            raise ApplicationsClosed()

        async with self.locks.hold(("apply", job_id, student_id)):
            if await self.storage.get_application_by_job_and_student(job_id, student_id):
                raise AlreadyApplied()
            try:
                application = await self.storage.create_application(Application(
                    job_id=job_id,
                    student_id=student_id,
                    status=ApplicationStatus.pending,
                    applied_at=self.clock()
                ))
            except DuplicateRecord as e:
                raise AlreadyApplied() from e

        logger.info("Student %s applied to job %s", student_id, job_id)
        await self._dispatch(background_tasks, self.notify_submitted, application, job)
        return application

    # ============================================================
    # DECIDE
    # ============================================================

    async def set_status(
        self,
        admin_id: str,
        application_id: str,
        new_status: ApplicationStatus,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Application:
        new_status = ApplicationStatus(new_status)
        if new_status == ApplicationStatus.pending:
            raise ValidationFailed("Status must be 'accepted' or 'declined'")

        async with self.locks.hold(("status", application_id)):
            application = await self.storage.get_application(application_id)
            if application is None:
                raise ApplicationNotFound()

            job = await self.storage.get_job(application.job_id)
            if job is None or job.posted_by != admin_id:
                raise Forbidden("Not your job posting")

            if application.is_decided:
                raise InvalidTransition(f"Application has already been {application.status.value}")

            updated = await self.storage.update_application_status(application_id, new_status)
            if updated is None:
                raise ApplicationNotFound()

        logger.info("Application %s %s by admin %s", application_id, new_status.value, admin_id)
        await self._dispatch(background_tasks, self.notify_decision, updated, job)
        return updated

    # ============================================================
    # LISTINGS
    # ============================================================

    async def list_for_student(self, student_id: str) -> List[Tuple[Application, Optional[Job]]]:
        """A student's applications, newest first, each with its job."""
        applications = await self.storage.list_applications_by_student(student_id)
        jobs = await asyncio.gather(*(self.storage.get_job(a.job_id) for a in applications))
        return list(zip(applications, jobs))

    async def list_for_job(
        self, admin_id: str, job_id: str
    ) -> List[Tuple[Application, Optional[User]]]:
        """Applications to one of the admin's own jobs, each with the applicant."""
        job = await self.storage.get_job(job_id)
        if job is None:
            raise JobNotFound()
        if job.posted_by != admin_id:
            raise Forbidden("Not your job posting")

        applications = await self.storage.list_applications_by_job(job_id)
        students = await asyncio.gather(*(self.storage.get_user(a.student_id) for a in applications))
        return list(zip(applications, students))

    # ============================================================
    # NOTIFICATIONS
    # ============================================================

    async def _dispatch(self, background_tasks: Optional[BackgroundTasks], func, *args) -> None:
        if background_tasks is not None:
            background_tasks.add_task(func, *args)
        else:
            await func(*args)

    async def _load_recipient(self, user_id: str) -> Optional[User]:
        try:
            user = await self.storage.get_user(user_id)
        except Exception:
            logger.exception("Could not load user %s for notification", user_id)
            return None
        if user is None:
            logger.warning("User %s not found; skipping notification", user_id)
        return user

    async def notify_submitted(self, application: Application, job: Job) -> None:
        """Confirm to the student and tell the poster; each send is independent."""
        student = await self._load_recipient(application.student_id)
        if student is not None:
            await self.email_service.send_application_submitted(
                student.email, student.name, job.title, job.company
            )

        admin = await self._load_recipient(job.posted_by)
        if admin is not None:
            student_name = student.name if student is not None else "A student"
            await self.email_service.send_new_applicant(admin.email, student_name, job.title)

    async def notify_decision(self, application: Application, job: Job) -> None:
        student = await self._load_recipient(application.student_id)
        if student is None:
            return

        if application.status == ApplicationStatus.accepted:
            await self.email_service.send_application_accepted(
                student.email, student.name, job.title, job.company
            )
        elif application.status == ApplicationStatus.declined:
            await self.email_service.send_application_declined(
                student.email, student.name, job.title, job.company
            )
