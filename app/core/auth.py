"""
Authorization Guard - FastAPI dependencies for protected routes.

Provides:
- Session resolution from the session cookie
- Role checks for student-only and admin-only routes

Admin routes and applying answer 403 to an anonymous caller; reading
your own profile or applications answers 401.

Ownership checks (an admin acting on their own job) live in the services,
which receive the resolved Session explicitly.
"""

from typing import Optional

from fastapi import Depends, Request

from app.core.config import Settings
from app.core.deps import get_app_settings, get_session_manager
from app.core.exceptions import Forbidden, Unauthenticated
from app.core.sessions import SessionManager
from app.models.entities import Session, UserRole


def get_session_token(
    request: Request,
    settings: Settings = Depends(get_app_settings)
) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


async def get_optional_session(
    token: Optional[str] = Depends(get_session_token),
    manager: SessionManager = Depends(get_session_manager)
) -> Optional[Session]:
    return await manager.resolve(token)


async def get_current_session(session: Optional[Session] = Depends(get_optional_session)) -> Session:
    """
    FastAPI dependency - Get the current authenticated session.

    Usage:
        @router.get("/protected")
        async def route(session: Session = Depends(get_current_session)):
            return session.user_id
    """
    if session is None:
        raise Unauthenticated()
    return session


async def get_current_student(session: Session = Depends(get_current_session)) -> Session:
    """Dependency - Require student role (401 without a session)."""
    if session.role != UserRole.student:
        raise Forbidden("Students only")
    return session


async def get_acting_student(session: Optional[Session] = Depends(get_optional_session)) -> Session:
    """Dependency - Require student role; no session is refused with 403 too."""
    if session is None:
        raise Forbidden()
    if session.role != UserRole.student:
        raise Forbidden("Students only")
    return session


async def get_current_admin(session: Optional[Session] = Depends(get_optional_session)) -> Session:
    """Dependency - Require admin role; no session is refused with 403 too."""
    if session is None:
        raise Forbidden()
    if session.role != UserRole.admin:
        raise Forbidden("Admins only")
    return session
