"""
Authentication Routes

POST /auth/send-otp - Email a one-time login code
POST /auth/verify-otp - Exchange the code for a session cookie
GET /auth/me - Get current user info
POST /auth/logout - Destroy the current session
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response

from app.core.auth import get_current_session, get_session_token
from app.core.config import Settings
from app.core.deps import get_app_settings, get_otp_service, get_session_manager
from app.core.exceptions import UserNotFound
from app.core.sessions import SessionManager
from app.db import get_storage
from app.db.storage import Storage
from app.models.entities import Session
from app.schemas.schemas import (
    SendOtpRequest, SendOtpResponse, SuccessResponse, UserResponse,
    VerifyOtpRequest, VerifyOtpResponse
)
from app.services.otp_service import OtpService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/send-otp", response_model=SendOtpResponse, response_model_exclude_none=True)
async def send_otp(
    request: SendOtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
    settings: Settings = Depends(get_app_settings)
):
    """
    Email a 6-digit login code.

    The code is stored even when the email cannot be delivered.
    """
    issued = await otp_service.request_code(request.email, request.name, request.role)
    return SendOtpResponse(
        message="OTP sent to email",
        dev_otp=issued.otp.code if settings.expose_dev_otp else None
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    response: Response,
    otp_service: OtpService = Depends(get_otp_service),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_app_settings)
):
    """
    Verify the code and log in.

    First login for an email creates the account with the given name and
    role; later logins keep the stored ones.
    """
    user = await otp_service.verify_code(request.email, request.code, request.name, request.role)
    token = await sessions.establish(user)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure
    )
    return VerifyOtpResponse(user=UserResponse.from_user(user))


@router.get("/me", response_model=UserResponse)
async def get_me(
    session: Session = Depends(get_current_session),
    storage: Storage = Depends(get_storage)
):
    """Get current authenticated user's info."""
    user = await storage.get_user(session.user_id)
    if user is None:
        raise UserNotFound()
    return UserResponse.from_user(user)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_app_settings)
):
    """Log out. Calling it without a session is not an error."""
    await sessions.destroy(token)
    response.delete_cookie(settings.session_cookie_name)
    return SuccessResponse()
