"""
Email result types and the SMTP fallback sender.
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EmailSent:
    """The provider accepted the message."""

    provider: str
    message_id: Optional[str] = None


@dataclass(frozen=True)
class EmailFailed:
    """
    The message was not sent.

    Sends are never retried automatically; ``retryable`` only records whether
    a later manual resend could succeed.
    """

    provider: str
    reason: str
    retryable: bool = False


EmailResult = Union[EmailSent, EmailFailed]


def _deliver(msg: MIMEMultipart, sender_email: str, to_email: str) -> None:
    settings = get_settings()
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.sendmail(sender_email, to_email, msg.as_string())


async def send_smtp_email(
    to_email: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None,
    from_email: Optional[str] = None,
    from_name: Optional[str] = None,
) -> EmailResult:
    """
    Send an email over SMTP.

    Used when no HTTP email provider is configured.
    """
    settings = get_settings()

    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.info(f"SMTP not configured - would have sent '{subject}' to {to_email}")
        return EmailFailed(provider="smtp", reason="smtp not configured")

    sender_email = from_email or settings.DEFAULT_FROM_EMAIL
    sender_name = from_name or settings.DEFAULT_FROM_NAME

    msg = MIMEMultipart("alternative")
    if text_body:
        msg.attach(MIMEText(text_body, "plain"))
    msg.attach(MIMEText(html_body, "html"))
    msg["Subject"] = subject
    msg["From"] = f"{sender_name} <{sender_email}>"
    msg["To"] = to_email

    try:
        await asyncio.to_thread(_deliver, msg, sender_email, to_email)
    except smtplib.SMTPAuthenticationError as e:
        return EmailFailed(provider="smtp", reason=f"authentication failed: {e}")
    except (smtplib.SMTPException, OSError) as e:
        return EmailFailed(provider="smtp", reason=str(e), retryable=True)

    return EmailSent(provider="smtp")
