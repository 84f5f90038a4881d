"""
Transactional email client.

Messages go to the Resend HTTP API. When no Resend key is configured the
client falls back to SMTP (see ``core.send_smtp_email``).

Every send returns an ``EmailResult`` (``EmailSent`` or ``EmailFailed``)
and is reported through ``log_email_result``; callers decide nothing else.

Usage:
    from libs.common.emails.client import get_email_client

    result = await get_email_client().send(
        to_email="customer@example.com",
        subject="Order Confirmed",
        html_body="<p>Thanks!</p>",
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.emails.core import (
    EmailFailed,
    EmailResult,
    EmailSent,
    send_smtp_email,
)
from libs.common.logging import get_logger

logger = get_logger(__name__)


def log_email_result(result: EmailResult, to_email: str, subject: str) -> None:
    """Single reporting channel for notification outcomes."""
    fields = {"to": to_email, "subject": subject, "provider": result.provider}
    if isinstance(result, EmailSent):
        logger.info(
            "Email sent",
            extra={"extra_fields": {**fields, "message_id": result.message_id}},
        )
    else:
        logger.error(
            "Email not sent (no retry): %s",
            result.reason,
            extra={
                "extra_fields": {
                    **fields,
                    "reason": result.reason,
                    "retryable": result.retryable,
                }
            },
        )


class EmailClient:
    """HTTP client for the Resend email API with SMTP fallback."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_key = settings.RESEND_API_KEY if api_key is None else api_key
        self.api_url = settings.RESEND_API_URL
        self.from_email = settings.DEFAULT_FROM_EMAIL
        self.from_name = settings.DEFAULT_FROM_NAME
        self.timeout = 30.0
        self._transport = transport

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> EmailResult:
        """
        Send a single email and report the outcome.

        Never raises for delivery problems; the failure is returned instead.
        """
        if self.api_key:
            result = await self._send_resend(to_email, subject, html_body, text_body)
        else:
            result = await send_smtp_email(
                to_email,
                subject,
                html_body,
                text_body=text_body,
                from_email=self.from_email,
                from_name=self.from_name,
            )
        log_email_result(result, to_email, subject)
        return result

    async def _send_resend(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str],
    ) -> EmailResult:
        payload: dict[str, Any] = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.RequestError as e:
            return EmailFailed(provider="resend", reason=str(e), retryable=True)

        if response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            message_id = body.get("id") if isinstance(body, dict) else None
            return EmailSent(provider="resend", message_id=message_id)

        return EmailFailed(
            provider="resend",
            reason=f"HTTP {response.status_code}: {response.text}",
            retryable=response.status_code >= 500 or response.status_code == 429,
        )


def get_email_client() -> EmailClient:
    """FastAPI dependency returning an EmailClient."""
    return EmailClient()
