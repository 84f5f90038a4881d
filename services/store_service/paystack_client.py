"""
Paystack API client for storefront checkout.

Provides async methods for:
- Initializing a transaction (returns the hosted checkout URL)
- Verifying a transaction by reference
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

PAYSTACK_PROVIDER = "paystack"


class PaystackError(Exception):
    """
    Paystack could not be reached or answered with an error.

    ``status_code`` is the HTTP status Paystack returned, or None when the
    request never got a response.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class PaystackClient:
    """Async client for the Paystack Transaction API."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        if not self.secret_key:
            raise ValueError("PAYSTACK_SECRET_KEY is required")
        self.base_url = (base_url or settings.PAYSTACK_API_BASE_URL).rstrip("/")
        self.currency = settings.PAYSTACK_CURRENCY
        self.timeout = settings.PAYSTACK_TIMEOUT_SECONDS
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[dict] = None,
    ) -> dict:
        """Make one request to Paystack and return the decoded body."""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    json=json_data,
                )
        except httpx.RequestError as e:
            logger.error(f"Paystack unreachable: {type(e).__name__}: {e}")
            raise PaystackError(message="Could not reach payment provider") from e

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}

        if not response.is_success:
            logger.error(f"Paystack API error: {response.status_code} - {data}")
            raise PaystackError(
                message=data.get("message", "Unknown Paystack error"),
                status_code=response.status_code,
                response_data=data,
            )

        if not data.get("status"):
            raise PaystackError(
                message=data.get("message", "Paystack request failed"),
                status_code=response.status_code,
                response_data=data,
            )

        return data

    # =========================================================================
    # Transaction Methods
    # =========================================================================

    async def initialize_transaction(
        self,
        email: str,
        amount_cents: int,
        metadata: dict[str, Any],
        callback_url: str,
    ) -> dict:
        """
        Start a transaction on Paystack's hosted checkout.

        Args:
            email: Customer email
            amount_cents: Amount in cents (Rand * 100)
            metadata: Echoed back unchanged by verify_transaction()
            callback_url: Where Paystack sends the customer afterwards

        Returns:
            The full Paystack response, ``data`` holding ``authorization_url``,
            ``access_code`` and ``reference``
        """
        return await self._request(
            "POST",
            "/transaction/initialize",
            json_data={
                "email": email,
                "amount": amount_cents,
                "currency": self.currency,
                "metadata": metadata,
                "callback_url": callback_url,
            },
        )

    async def verify_transaction(self, reference: str) -> dict:
        """
        Fetch the authoritative status of a transaction.

        Args:
            reference: Transaction reference from initialize_transaction()

        Returns:
            The full Paystack response; ``data.status`` is ``"success"`` only
            for paid transactions
        """
        return await self._request(
            "GET", f"/transaction/verify/{quote(reference, safe='')}"
        )
