"""
FastAPI dependencies that hand out the app-wide collaborators.

Everything hangs off app.state, set up once by create_app(), so tests can
build an app around their own settings, storage and email fakes.
"""

from fastapi import Depends, Request

from app.core.config import Settings
from app.core.sessions import SessionManager
from app.db import get_storage
from app.db.storage import Storage
from app.services.application_service import ApplicationService
from app.services.email_service import EmailService, get_email_service
from app.services.job_service import JobService
from app.services.otp_service import OtpService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_manager(
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
) -> SessionManager:
    return SessionManager(storage, settings)


def get_otp_service(
    storage: Storage = Depends(get_storage),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_app_settings)
) -> OtpService:
    return OtpService(storage, email_service, settings)


def get_job_service(storage: Storage = Depends(get_storage)) -> JobService:
    return JobService(storage)


def get_application_service(
    storage: Storage = Depends(get_storage),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_app_settings)
) -> ApplicationService:
    return ApplicationService(storage, email_service, settings)
