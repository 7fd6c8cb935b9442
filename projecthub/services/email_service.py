"""
Email service - handles sending emails.
Currently supports: Mock (development) and SMTP (production ready).

Sending is fire and forget for callers: send_* never raises, failures are
logged and reported through the boolean result.
"""
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from abc import ABC, abstractmethod

from projecthub.config import settings

logger = logging.getLogger(__name__)


class EmailService(ABC):
    """Base email service interface."""

    @abstractmethod
    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        html: Optional[str] = None
    ) -> bool:
        """Send an email."""
        pass

    async def send_verification_email(self, to: str, name: str, verify_link: str) -> bool:
        """Send email verification email."""
        subject = "Please verify your email"
        body = f"""
Hello {name},

Welcome to ProjectHub! Please verify your email by opening the link below:

{verify_link}

This link expires in {settings.TEMPORARY_TOKEN_EXPIRE_MINUTES} minutes.

If you didn't create an account, please ignore this email.
        """

        html = f"""
        <html>
        <body>
            <h2>Welcome to ProjectHub, {name}!</h2>
            <p>Please verify your email by clicking the button below:</p>
            <p>
                <a href="{verify_link}"
                   style="background-color: #22BC66; color: white; padding: 14px 25px;
                          text-decoration: none; display: inline-block; border-radius: 4px;">
                    Verify your email
                </a>
            </p>
            <p>Or copy this link: {verify_link}</p>
        </body>
        </html>
        """

        return await self.send_email(to, subject, body, html)

    async def send_password_reset_email(self, to: str, name: str, reset_link: str) -> bool:
        """Send password reset email."""
        subject = "Password reset request"
        body = f"""
Hello {name},

We got a request to reset the password of your account. Open the link below:

{reset_link}

This link expires in {settings.TEMPORARY_TOKEN_EXPIRE_MINUTES} minutes.

If you didn't request this, please ignore this email.
        """

        html = f"""
        <html>
        <body>
            <h2>Password Reset Request</h2>
            <p>Click the button below to reset your password:</p>
            <p>
                <a href="{reset_link}"
                   style="background-color: #DC4D2F; color: white; padding: 14px 25px;
                          text-decoration: none; display: inline-block; border-radius: 4px;">
                    Reset password
                </a>
            </p>
            <p>Or copy this link: {reset_link}</p>
        </body>
        </html>
        """

        return await self.send_email(to, subject, body, html)


class MockEmailService(EmailService):
    """
    Mock email service for development.
    Logs emails instead of sending them.
    """

    def __init__(self):
        # Sent emails, kept for tests and debugging
        self.sent_emails: list = []

    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        html: Optional[str] = None
    ) -> bool:
        self.sent_emails.append({"to": to, "subject": subject, "body": body})
        logger.info("Mock email to %s: %s\n%s", to, subject, body)
        return True

    def get_last_email(self) -> Optional[dict]:
        """Get the last sent email (for testing)."""
        return self.sent_emails[-1] if self.sent_emails else None


class SMTPEmailService(EmailService):
    """
    SMTP email service for production.
    Configure with environment variables:
    - SMTP_HOST
    - SMTP_PORT
    - SMTP_USER
    - SMTP_PASSWORD
    - EMAIL_FROM
    """

    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM

    def _deliver(self, to: str, message: str) -> None:
        with smtplib.SMTP(self.host, self.port) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.sendmail(self.from_email, to, message)

    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        html: Optional[str] = None
    ) -> bool:
        """Send email via SMTP."""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = self.from_email
        msg['To'] = to

        msg.attach(MIMEText(body, 'plain'))
        if html:
            msg.attach(MIMEText(html, 'html'))

        try:
            # smtplib blocks, keep it off the event loop
            await asyncio.to_thread(self._deliver, to, msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s: %s", to, subject)
            return False

        logger.info("Email sent to %s: %s", to, subject)
        return True


# =============================================================================
# EMAIL SERVICE SINGLETON
# =============================================================================

_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get the email service instance."""
    global _email_service

    if _email_service is None:
        if settings.SMTP_HOST:
            logger.info("Using SMTP email service")
            _email_service = SMTPEmailService()
        else:
            logger.info("Using mock email service (emails are logged)")
            _email_service = MockEmailService()

    return _email_service


def set_email_service(service: Optional[EmailService]) -> None:
    """Set custom email service (for testing)."""
    global _email_service
    _email_service = service
