"""
Email Service - transactional mail for the job board.

Messages sent:
1. Verification OTP (registration)
2. Password reset link
3. Interview scheduled notice
4. Admin invite

Backends:
- "console": logs the message instead of sending it (development / tests)
- "smtp":    delivers through smtplib with optional STARTTLS

Every send returns a SideEffectResult. Delivery problems are logged and
reported in the result; nothing here raises into the caller, so the caller
decides whether a failed email is fatal (registration) or a warning
(interview scheduling).
"""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage

from jobboard.core.config import get_settings
from jobboard.schemas.schemas import SideEffectResult

settings = get_settings()
logger = logging.getLogger(__name__)


class EmailService:

    def __init__(self, backend: str = None):
        self.backend = (backend or settings.email_backend).lower()

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    def send(self, to_email: str, subject: str, text_body: str) -> SideEffectResult:
        """Send one plain-text message through the configured backend."""
        if self.backend == "console":
            logger.info("[email:console] to=%s subject=%r\n%s", to_email, subject, text_body)
            return SideEffectResult(delivered=True)

        if self.backend == "smtp":
            error = self._send_smtp(to_email, subject, text_body)
            if error:
                return SideEffectResult(delivered=False, error=error)
            return SideEffectResult(delivered=True)

        logger.error("Unknown email backend %r", self.backend)
        return SideEffectResult(delivered=False, error=f"Unknown email backend '{self.backend}'")

    def _send_smtp(self, to_email: str, subject: str, text_body: str):
        """Returns None on success, an error message otherwise."""
        if not settings.smtp_host:
            return "SMTP host is not configured"

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{settings.email_from_name} <{settings.email_from}>"
        msg["To"] = to_email
        msg.set_content(text_body)

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds) as server:
                if settings.smtp_use_tls:
                    server.starttls()
                if settings.smtp_username:
                    server.login(settings.smtp_username, settings.smtp_password)
                server.send_message(msg)
            return None
        except smtplib.SMTPAuthenticationError:
            logger.exception("SMTP auth failed for %s", settings.smtp_username)
            return "SMTP authentication failed"
        except TimeoutError:
            logger.exception("SMTP timeout for host %s", settings.smtp_host)
            return "SMTP connection timed out"
        except smtplib.SMTPException:
            logger.exception("SMTP error while sending email to %s", to_email)
            return "SMTP rejected the message"
        except OSError:
            logger.exception("SMTP network error while sending email to %s", to_email)
            return "SMTP network error"

    # ------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------

    def send_verification_otp(self, to_email: str, name: str, otp: str) -> SideEffectResult:
        body = (
            f"Hello {name},\n\n"
            "Thank you for registering. Use the following code to verify your email address:\n\n"
            f"    {otp}\n\n"
            f"The code is valid for {settings.otp_expire_minutes} minutes.\n"
            "If you didn't request this, please ignore this email.\n"
        )
        return self.send(to_email, "Verify Your Email Address", body)

    def send_password_reset(self, to_email: str, name: str, reset_url: str) -> SideEffectResult:
        body = (
            f"Hello {name},\n\n"
            "You requested a password reset. Open the link below to choose a new password:\n\n"
            f"    {reset_url}\n\n"
            f"The link expires in {settings.reset_token_expire_minutes} minutes.\n"
            "If you didn't request this, you can ignore this email.\n"
        )
        return self.send(to_email, "Password Reset", body)

    def send_interview_scheduled(self, to_email: str, name: str, job_title: str,
                                 interview_date: datetime, interview_link: str) -> SideEffectResult:
        body = (
            f"Hello {name},\n\n"
            f"Your interview for {job_title} has been scheduled.\n\n"
            f"Date & Time (UTC): {interview_date.strftime('%Y-%m-%d %H:%M')}\n"
            f"Interview Link: {interview_link}\n\n"
            "Please join 5 minutes before your scheduled time.\n\n"
            "Best regards,\nThe Hiring Team\n"
        )
        return self.send(to_email, f"Interview Scheduled for {job_title}", body)

    def send_admin_invite(self, to_email: str, token: str, invited_by: str) -> SideEffectResult:
        accept_url = f"{settings.frontend_url}/admin/accept-invite?token={token}"
        body = (
            "Hello,\n\n"
            f"{invited_by} invited you to become an administrator.\n"
            "Sign in with this email address and open the link below to accept:\n\n"
            f"    {accept_url}\n\n"
            f"The invite expires in {settings.admin_invite_expire_hours} hours and can be used once.\n"
        )
        return self.send(to_email, "Admin Invitation", body)


# Singleton instance
_email_service: EmailService = None


def get_email_service() -> EmailService:
    """Get or create the email service (singleton pattern)"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
