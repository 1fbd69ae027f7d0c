# backend/slicedadvice/services/email.py
"""
Email Service for the SlicedAdvice platform.

Sends plain-text transactional email through the Resend API. Extends
BaseService for consistent logging and metrics; it needs no database
session and is built once at startup.
"""

import logging
from typing import Any, Dict, Optional

import resend

from ..core.config import settings
from ..core.exceptions import NotificationFailedException, ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)


class EmailService(BaseService):
    """
    Service for sending emails using Resend API.

    The payload contract is the original ``{email, subject, message}``
    triple, sent as a plain-text body.
    """

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        """
        Initialize email service.

        Args:
            api_key: Resend API key, defaults to RESEND_API_KEY
            from_email: Sender address, defaults to settings.from_email
        """
        super().__init__()

        api_key = api_key or settings.resend_api_key
        if not api_key:
            raise ServiceException("Resend API key not configured")

        resend.api_key = api_key
        self.from_email = from_email or settings.from_email

        self.logger.info("EmailService initialized successfully")

    @BaseService.measure_operation("send_email")
    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        """
        Send a plain-text email using Resend.

        Returns:
            Dict containing the Resend API response

        Raises:
            NotificationFailedException: If the provider rejects or fails the send
        """
        email_data = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "text": text_content,
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            error_msg = str(e) or "Unknown error"
            self.logger.error(f"Failed to send email to {to_email}: {error_msg}")
            self.log_operation("email_failed", to_email=to_email, subject=subject, error=error_msg)
            raise NotificationFailedException(
                f"Email sending failed: {error_msg}", details={"to_email": to_email}
            ) from e

        self.logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        self.log_operation("email_sent", to_email=to_email, subject=subject)
        return dict(response) if response else {}


def build_email_service() -> Any:
    """Pick the email backend named by EMAIL_PROVIDER."""
    if settings.email_provider == "resend":
        return EmailService()

    from .email_console import ConsoleEmailService

    return ConsoleEmailService()
