"""
Job Routes

POST /jobs - Create job posting (admin only)
GET /jobs - List all jobs, newest first
GET /jobs/mine - Jobs posted by the current admin
GET /jobs/{job_id} - Get job details
GET /jobs/{job_id}/applications - Applications to a job (owning admin only)
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_current_admin
from app.core.deps import get_application_service, get_job_service
from app.models.entities import Session
from app.schemas.schemas import (
    ApplicationWithStudentResponse, JobCreate, JobResponse, UserResponse
)
from app.services.application_service import ApplicationService
from app.services.job_service import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    job: JobCreate,
    admin: Session = Depends(get_current_admin),
    job_service: JobService = Depends(get_job_service)
):
    """Create a new job posting. Only admins can create jobs."""
    created = await job_service.create_job(
        admin_id=admin.user_id,
        title=job.title,
        company=job.company,
        location=job.location,
        description=job.description,
        requirements=job.requirements,
        deadline=job.deadline
    )
    return JobResponse.from_job(created)


@router.get("", response_model=List[JobResponse])
async def list_jobs(job_service: JobService = Depends(get_job_service)):
    """List all job postings, newest first. Expired ones are included."""
    return [JobResponse.from_job(job) for job in await job_service.list_jobs()]


@router.get("/mine", response_model=List[JobResponse])
async def list_my_jobs(
    admin: Session = Depends(get_current_admin),
    job_service: JobService = Depends(get_job_service)
):
    """Get all jobs posted by the current admin."""
    jobs = await job_service.list_jobs_by_admin(admin.user_id)
    return [JobResponse.from_job(job) for job in jobs]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, job_service: JobService = Depends(get_job_service)):
    """Get details of a specific job."""
    return JobResponse.from_job(await job_service.get_job(job_id))


@router.get("/{job_id}/applications", response_model=List[ApplicationWithStudentResponse])
async def get_job_applications(
    job_id: str,
    admin: Session = Depends(get_current_admin),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Applications received for one of the admin's own jobs."""
    rows = await application_service.list_for_job(admin.user_id, job_id)
    return [
        ApplicationWithStudentResponse.from_application(
            application,
            student=UserResponse.from_user(student) if student else None
        )
        for application, student in rows
    ]
