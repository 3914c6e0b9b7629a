"""
Real Notification Channels

Production transports for customer notifications:
- Twilio for SMS
- SendGrid for Email
"""

import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from ordering.core.config import Settings
from ordering.services.notifications.base import NotificationChannel, NotificationResult

logger = logging.getLogger(__name__)


class TwilioSmsChannel(NotificationChannel):
    """SMS delivery through Twilio."""

    def __init__(self, settings: Settings):
        if settings.twilio_account_sid and settings.twilio_auth_token:
            self.twilio_client: Optional[TwilioClient] = TwilioClient(
                settings.twilio_account_sid,
                settings.twilio_auth_token
            )
            self.twilio_from_number = settings.twilio_phone_number
        else:
            self.twilio_client = None
            logger.warning("Twilio credentials not configured")

    @property
    def provider_name(self) -> str:
        return "twilio"

    def send(self, address: str, subject: str, body: str) -> NotificationResult:
        """Send SMS via Twilio. The subject is prepended to the text."""
        if not self.twilio_client:
            return NotificationResult(
                success=False,
                error_message="Twilio not configured",
                provider="twilio"
            )

        try:
            result = self.twilio_client.messages.create(
                body=f"{subject}\n{body}",
                from_=self.twilio_from_number,
                to=address
            )

            logger.info(f"SMS sent to {address}: {result.sid}")

            return NotificationResult(
                success=True,
                message_id=result.sid,
                provider="twilio"
            )

        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="twilio"
            )


class SendGridEmailChannel(NotificationChannel):
    """E-mail delivery through SendGrid."""

    def __init__(self, settings: Settings):
        if settings.sendgrid_api_key:
            self.sendgrid_client: Optional[SendGridAPIClient] = SendGridAPIClient(
                settings.sendgrid_api_key
            )
        else:
            self.sendgrid_client = None
            logger.warning("SendGrid credentials not configured")
        self.sendgrid_from_email = settings.sendgrid_from_email
        self.restaurant_name = settings.restaurant_name

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    def send(self, address: str, subject: str, body: str) -> NotificationResult:
        """Send email via SendGrid."""
        if not self.sendgrid_client:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid"
            )

        body_html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h1 style="color: #ff4757;">{subject}</h1>
            <p>{body}</p>
            <p>Thank you for ordering from {self.restaurant_name}!</p>
        </div>
        """

        try:
            message = Mail(
                from_email=self.sendgrid_from_email,
                to_emails=address,
                subject=subject,
                html_content=body_html,
                plain_text_content=body
            )

            response = self.sendgrid_client.send(message)

            logger.info(f"Email sent to {address}: {response.status_code}")

            return NotificationResult(
                success=response.status_code in [200, 201, 202],
                message_id=response.headers.get("X-Message-Id"),
                provider="sendgrid"
            )

        # SendGrid surfaces HTTP and transport failures as assorted exception types.
        except Exception as e:
            logger.error(f"SendGrid error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid"
            )
