"""Reminder email notifier.

Builds the reminder message for a tracked email and hands it to an async SMTP
transport (aiosmtplib). Transport failures are logged and reported as a
``False`` return value; they never propagate to the caller.
"""

import asyncio
from email.message import EmailMessage
from typing import Awaitable, Callable, Optional

import aiosmtplib

from logger_config import setup_logger

logger = setup_logger(__name__, 'notifier.log')

REMINDER_SUBJECT = "Action Required: Email Recovery"


class Notifier:
    """Sends acknowledgment-link reminders for tracked emails.

    Args:
        sender: From address
        base_url: Public base URL of the API, used for tracking links
        send: Coroutine delivering an EmailMessage (default: aiosmtplib.send)
        **transport_options: Passed to ``send`` (hostname, port, credentials...)
    """

    def __init__(
        self,
        sender: Optional[str],
        base_url: str,
        send: Callable[..., Awaitable] = aiosmtplib.send,
        **transport_options
    ):
        self.sender = sender
        self.base_url = base_url.rstrip('/')
        self._send = send
        self.transport_options = transport_options

    def build_tracking_link(self, record_id: str) -> str:
        return f"{self.base_url}/acknowledge/{record_id}"

    def build_message(self, recipient: str, record_id: str) -> EmailMessage:
        """Build the reminder message with plain-text and HTML bodies."""
        link = self.build_tracking_link(record_id)

        message = EmailMessage()
        if self.sender:
            message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = REMINDER_SUBJECT

        message.set_content(
            "Email is recovered use the mail.\n\n"
            f"Please open the link below to confirm you have seen this:\n{link}\n"
        )
        message.add_alternative(
            "<h3>Email is recovered use the mail</h3>"
            "<p>Please click the button below to confirm you have seen this.</p>"
            f'<a href="{link}" style="padding: 10px 20px; color: white; '
            'background-color: blue; text-decoration: none; border-radius: 5px;">Seen</a>',
            subtype="html"
        )
        return message

    async def send_reminder(self, recipient: str, record_id: str) -> bool:
        """Send one reminder for ``record_id`` to ``recipient``.

        Returns:
            bool: True if the transport accepted the message, False otherwise
        """
        message = self.build_message(recipient, record_id)
        try:
            await self._send(message, **self.transport_options)
            logger.info(f"Reminder sent to {recipient} for ID: {record_id}")
            return True
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP error sending reminder to {recipient} for ID {record_id}: {str(e)}")
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f"Network error sending reminder to {recipient} for ID {record_id}: {str(e)}")
        except Exception as e:
            logger.error(
                f"Unexpected error sending reminder to {recipient} for ID {record_id}: {str(e)}",
                exc_info=True
            )
        return False


def build_notifier(settings) -> Notifier:
    """Create the process-wide notifier from SMTP settings."""
    transport_options = {
        "hostname": settings.SMTP_HOST,
        "port": settings.SMTP_PORT,
        "start_tls": settings.SMTP_START_TLS,
        "timeout": settings.SMTP_TIMEOUT,
    }
    if settings.SMTP_USER:
        transport_options["username"] = settings.SMTP_USER
        transport_options["password"] = settings.SMTP_PASS

    return Notifier(
        sender=settings.mail_sender,
        base_url=settings.PUBLIC_BASE_URL,
        **transport_options
    )
