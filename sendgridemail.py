import asyncio
import logging

import sendgrid
from sendgrid.helpers.mail import Mail

import secretmanager
from config import Settings
from errors import UpstreamFailure

logger = logging.getLogger('uvicorn.error')


def resolve_api_key(settings: Settings) -> str:
    if settings.sendgrid_api_key:
        return settings.sendgrid_api_key
    if settings.sendgrid_api_key_secret:
        return secretmanager.get_secret(settings.sendgrid_api_key_secret)
    raise ValueError("No SendGrid API key configured (set FORUM_SENDGRID_API_KEY or FORUM_SENDGRID_API_KEY_SECRET)")


class SendGridMailer:
    """
    Outbound mail over SendGrid.

    send() never blocks the event loop: the SendGrid client is synchronous, so
    each call runs in a worker thread and several sends may be in flight at once.
    """

    def __init__(self, client: sendgrid.SendGridAPIClient, from_email: str):
        self.client = client
        self.from_email = from_email

    @classmethod
    def from_settings(cls, settings: Settings) -> "SendGridMailer":
        return cls(sendgrid.SendGridAPIClient(resolve_api_key(settings)), settings.mail_from)

    async def send(self, to: str, subject: str, body: str) -> bool:
        message = Mail(
            from_email=self.from_email,
            to_emails=to,
            subject=subject,
            plain_text_content=body,
        )
        try:
            response = await asyncio.to_thread(self.client.send, message)
        except Exception as e:
            logger.error(f"SendGrid send to {to} failed: {e}")
            raise UpstreamFailure("mail send", str(e)) from e
        if response.status_code >= 400:
            logger.error(f"SendGrid rejected mail to {to}: status {response.status_code}, body {response.body}")
            raise UpstreamFailure("mail send", f"status {response.status_code}")
        logger.info(f"Mail '{subject}' sent to {to} (status {response.status_code})")
        return True
