"""Email delivery using the Resend API."""

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any

import resend

from src.identity.core.config import Settings, get_settings
from src.identity.core.errors import EmailDeliveryError
from src.identity.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    text: str


class EmailSender:
    """Sends rendered messages through Resend.

    When no API key is configured the message is logged instead of sent.
    Transport failures and timeouts raise EmailDeliveryError.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    async def send(self, to: str, message: EmailMessage) -> None:
        if not self.settings.resend_api_key:
            # Dev mode: log email metadata instead of sending
            logger.warning(
                "RESEND_API_KEY not set - email not sent",
                subject=message.subject,
            )
            return

        resend.api_key = self.settings.resend_api_key
        params: dict[str, Any] = {
            "from": self.settings.email_from,
            "to": [to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }

        try:
            # resend is synchronous; run it off the event loop with a timeout
            await asyncio.wait_for(
                asyncio.to_thread(partial(resend.Emails.send, params)),
                timeout=self.settings.email_send_timeout_seconds,
            )
        except TimeoutError as e:
            logger.error(
                "Email send timed out",
                subject=message.subject,
                timeout=self.settings.email_send_timeout_seconds,
            )
            raise EmailDeliveryError() from e
        except Exception as e:
            logger.error("Failed to send email", subject=message.subject, error=str(e))
            raise EmailDeliveryError() from e

        logger.info("Email sent", subject=message.subject)


_email_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    """Get the process-wide email sender."""
    global _email_sender
    if _email_sender is None:
        _email_sender = EmailSender()
    return _email_sender
