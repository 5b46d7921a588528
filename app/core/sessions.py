"""
Server-side sessions.

The cookie holds a signed JWT whose only claim of interest is `sub`, the
opaque session id. Identity and role always come from the stored Session
record, so revoking a session (logout) takes effect immediately.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from jose import JWTError, jwt

from app.core.config import Settings
from app.core.exceptions import StorageUnavailable, UpstreamUnavailable
from app.db.storage import Storage
from app.models.entities import Session, User, utcnow

logger = logging.getLogger(__name__)


def create_session_token(session: Session, settings: Settings) -> str:
    """Sign the session id into the cookie value."""
    payload = {"sub": session.id, "exp": session.expires_at}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str, settings: Settings, verify_exp: bool = True) -> Optional[str]:
    """Return the session id, or None for a tampered or expired token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": verify_exp}
        )
    except JWTError:
        return None
    return payload.get("sub")


class SessionManager:

    def __init__(self, storage: Storage, settings: Settings, clock: Callable[[], datetime] = utcnow):
        self.storage = storage
        self.settings = settings
        self.clock = clock

    async def establish(self, user: User) -> str:
        """Bind a new session to the user; returns the cookie token."""
        now = self.clock()
        session = await self.storage.create_session(Session(
            id=secrets.token_urlsafe(32),
            user_id=user.id,
            role=user.role,
            created_at=now,
            expires_at=now + timedelta(minutes=self.settings.session_ttl_minutes)
        ))
        return create_session_token(session, self.settings)

    async def resolve(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        session_id = decode_session_token(token, self.settings)
        if not session_id:
            return None

        session = await self.storage.get_session(session_id)
        if session is None:
            return None
        if session.is_expired(self.clock()):
            await self.storage.delete_session(session_id)
            return None
        return session

    async def destroy(self, token: Optional[str]) -> bool:
        """
        Delete the session behind `token`.

        Missing or unknown sessions are not an error. A storage failure is
        reported as UpstreamUnavailable.
        """
        if not token:
            return False
        session_id = decode_session_token(token, self.settings, verify_exp=False)
        if not session_id:
            return False

        try:
            return await self.storage.delete_session(session_id)
        except StorageUnavailable as e:
            logger.error("Could not destroy session: %s", e)
            raise UpstreamUnavailable("Logout failed") from e
