"""
Job Service - admin-posted job listings.

Jobs are immutable once posted; there is no update or delete path.
"""

from datetime import datetime
from typing import List

from app.core.exceptions import JobNotFound
from app.db.storage import Storage
from app.models.entities import Job


class JobService:

    def __init__(self, storage: Storage):
        self.storage = storage

    async def create_job(
        self,
        admin_id: str,
        title: str,
        company: str,
        location: str,
        description: str,
        requirements: str,
        deadline: datetime
    ) -> Job:
        return await self.storage.create_job(Job(
            title=title,
            company=company,
            location=location,
            description=description,
            requirements=requirements,
            deadline=deadline,
            posted_by=admin_id
        ))

    async def get_job(self, job_id: str) -> Job:
        job = await self.storage.get_job(job_id)
        if job is None:
            raise JobNotFound()
        return job

    async def list_jobs(self) -> List[Job]:
        """All jobs, newest first."""
        return await self.storage.list_jobs()

    async def list_jobs_by_admin(self, admin_id: str) -> List[Job]:
        return await self.storage.list_jobs_by_admin(admin_id)
