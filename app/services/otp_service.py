"""
OTP Service - passwordless login with emailed one-time codes.

Flow:
1. request_code() stores a fresh 6-digit code and emails it
2. verify_code() checks it against the newest code for the email,
   consumes it, and finds or creates the user

Every request inserts a new row; older codes are never touched and only
the newest one is accepted. A code is deleted on success and on expiry,
but kept on a mismatch so the user can retry.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, NamedTuple, Optional

from app.core.config import Settings
from app.core.exceptions import CodeExpired, CodeMismatch, DuplicateRecord, NoCodeIssued
from app.core.locks import KeyedLock
from app.db.storage import Storage
from app.models.entities import Otp, User, UserRole, utcnow
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

# One verification at a time per email within this process; across
# processes the delete result decides which verification wins
_verify_locks = KeyedLock()


def generate_otp(length: int = 6) -> str:
    """Uniform over 0..10^length-1, zero padded so leading zeros survive."""
    return str(secrets.randbelow(10 ** length)).zfill(length)


class OtpIssued(NamedTuple):
    otp: Otp
    email_sent: bool


class OtpService:

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
        self.locks = _verify_locks if locks is None else locks

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.otp_ttl_minutes)

    async def request_code(self, email: str, name: str, role: UserRole) -> OtpIssued:
        """
        Issue and email a new code.

        The role is what the client claims; it is only used if this email
        ends up creating a new account at verification time.
        """
        now = self.clock()
        otp = await self.storage.create_otp(Otp(
            email=email,
            code=generate_otp(self.settings.otp_length),
            created_at=now,
            expires_at=now + self.ttl
        ))
        logger.info("OTP issued for %s (role=%s), expires at %s", email, UserRole(role).value, otp.expires_at.isoformat())

        email_sent = await self.email_service.send_otp(email, otp.code, name)
        if not email_sent:
            logger.warning("OTP email to %s was not delivered; the code is still valid", email)
            if self.settings.expose_dev_otp:
                logger.warning("Development OTP for %s: %s", email, otp.code)

        return OtpIssued(otp=otp, email_sent=email_sent)

    async def verify_code(self, email: str, code: str, name: str, role: UserRole) -> User:
        """
        Consume the newest code for `email` and return the signed-in user.

        Raises NoCodeIssued, CodeMismatch or CodeExpired. For an existing
        user the supplied name and role are ignored.
        """
        async with self.locks.hold(email):
            latest = await self.storage.get_latest_otp_by_email(email)
            if latest is None:
                raise NoCodeIssued()

            if latest.code != code:
                raise CodeMismatch()

            if latest.is_expired(self.clock()):
                await self.storage.delete_otp(latest.id)
                raise CodeExpired()

            # Another worker consumed it between our read and delete
            if not await self.storage.delete_otp(latest.id):
                raise NoCodeIssued()

        return await self._resolve_user(email, name, role)

    async def _resolve_user(self, email: str, name: str, role: UserRole) -> User:
        user = await self.storage.get_user_by_email(email)
        if user is None:
            try:
                user = await self.storage.create_user(User(
                    email=email, name=name, role=role, is_verified=True
                ))
                logger.info("Created %s account for %s", user.role.value, email)
                return user
            except DuplicateRecord:
                # Created concurrently by another process
                user = await self.storage.get_user_by_email(email)

        updated = await self.storage.update_user(user.id, is_verified=True)
        return updated or user
