"""
Application Routes

POST /applications - Apply to a job (student only)
GET /applications/my - Get my applications with their jobs (student only)
PATCH /applications/{application_id}/status - Accept or decline (owning admin only)
"""

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from app.core.auth import get_acting_student, get_current_admin, get_current_student
from app.core.deps import get_application_service
from app.models.entities import Session
from app.schemas.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationStatusUpdate,
    ApplicationWithJobResponse, JobResponse
)
from app.services.application_service import ApplicationService

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply_to_job(
    request: ApplicationCreate,
    background_tasks: BackgroundTasks,
    student: Session = Depends(get_acting_student),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Apply to a job. Students only. Cannot apply twice to same job."""
    application = await application_service.apply(
        student.user_id, request.job_id, background_tasks=background_tasks
    )
    return ApplicationResponse.from_application(application)


@router.get("/my", response_model=List[ApplicationWithJobResponse])
async def get_my_applications(
    student: Session = Depends(get_current_student),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Get the current student's applications, newest first."""
    rows = await application_service.list_for_student(student.user_id)
    return [
        ApplicationWithJobResponse.from_application(
            application,
            job=JobResponse.from_job(job) if job else None
        )
        for application, job in rows
    ]


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: Session = Depends(get_current_admin),
    application_service: ApplicationService = Depends(get_application_service)
):
    """Accept or decline a pending application to one of the admin's jobs."""
    application = await application_service.set_status(
        admin.user_id, application_id, update.status.value, background_tasks=background_tasks
    )
    return ApplicationResponse.from_application(application)
