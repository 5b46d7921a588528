"""
Email Service - templated notifications over SMTP.

Every public method returns True when the message was handed to the SMTP
server and False otherwise. Nothing here raises: callers treat delivery as
best-effort and the domain state is the source of truth.
"""

import logging
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path

import aiosmtplib
from fastapi import Request
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import Settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
SENDER_NAME = "Student Placement System"


class EmailService:

    def __init__(self, settings: Settings):
        self.settings = settings
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"])
        )

    def render(self, template_name: str, **context) -> str:
        template = self.env.get_template(f"email/{template_name}.html")
        return template.render(**context)

    async def send(self, to_email: str, subject: str, template_name: str, **context) -> bool:
        if not self.settings.smtp_configured:
            logger.warning("SMTP not configured. Skipping '%s' email to %s", template_name, to_email)
            return False

        try:
            message = EmailMessage()
            message["From"] = formataddr((SENDER_NAME, self.settings.smtp_from_email))
            message["To"] = to_email
            message["Subject"] = subject
            message.set_content("Please enable HTML to view this email.")
            message.add_alternative(self.render(template_name, **context), subtype="html")

            # Implicit TLS on 465 (SMTPS), STARTTLS on submission ports
            implicit_tls = self.settings.smtp_port == 465
            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_user,
                password=self.settings.smtp_password,
                use_tls=implicit_tls,
                start_tls=not implicit_tls,
                timeout=self.settings.smtp_timeout
            )
        except Exception as e:
            logger.error("Failed to send '%s' email to %s: %s", template_name, to_email, e)
            return False

        logger.info("Email '%s' sent to %s", template_name, to_email)
        return True

    # ============================================================
    # NOTIFICATIONS
    # ============================================================

    async def send_otp(self, email: str, code: str, name: str) -> bool:
        return await self.send(
            email,
            "Your OTP Code - Student Placement System",
            "otp_code",
            name=name,
            code=code,
            ttl_minutes=self.settings.otp_ttl_minutes
        )

    async def send_application_submitted(
        self, student_email: str, student_name: str, job_title: str, company: str
    ) -> bool:
        return await self.send(
            student_email,
            f"Application Submitted - {job_title}",
            "application_submitted",
            student_name=student_name,
            job_title=job_title,
            company=company
        )

    async def send_application_accepted(
        self, student_email: str, student_name: str, job_title: str, company: str
    ) -> bool:
        return await self.send(
            student_email,
            f"Application Accepted - {job_title}",
            "application_accepted",
            student_name=student_name,
            job_title=job_title,
            company=company
        )

    async def send_application_declined(
        self, student_email: str, student_name: str, job_title: str, company: str
    ) -> bool:
        return await self.send(
            student_email,
            f"Application Update - {job_title}",
            "application_declined",
            student_name=student_name,
            job_title=job_title,
            company=company
        )

    async def send_new_applicant(self, admin_email: str, student_name: str, job_title: str) -> bool:
        return await self.send(
            admin_email,
            f"New Application Received - {job_title}",
            "new_applicant",
            student_name=student_name,
            job_title=job_title
        )


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service
