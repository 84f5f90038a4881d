"""Checkout controller: turns a cart and a filled-in form into a paid order.

The controller is the client half of the payment flow. ``submit()`` asks
the store API to start a Paystack transaction and returns the hosted
payment page URL to send the customer to. When the customer comes back
with a ``reference`` query parameter, ``handle_return()`` has the store
verify it. The cart is cleared only after a verified payment.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import httpx
from libs.common.logging import get_logger
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.store_service.cart import CartState

logger = get_logger(__name__)

GENERIC_FAILURE = "Payment could not be processed. Please try again."


class CheckoutForm(BaseModel):
    """Contact and shipping details; every field is required."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    postal_code: str = Field(..., min_length=1, max_length=20)

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class CheckoutError(Exception):
    """The store API refused a checkout call or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[list[str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or []
        super().__init__(message)


@dataclass
class CheckoutOutcome:
    """Result of returning from the payment page."""

    success: bool
    reference: str
    message: str
    order: Optional[dict[str, Any]] = None
    gateway_response: dict[str, Any] = field(default_factory=dict)

    @property
    def order_number(self) -> Optional[str]:
        return self.order.get("order_number") if self.order else None


class StorefrontClient:
    """HTTP client for the store service payment routes."""

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._headers = {"Content-Type": "application/json"}
        if access_token:
            self._headers["Authorization"] = f"Bearer {access_token}"

    async def _post(self, endpoint: str, payload: dict) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    endpoint, json=payload, headers=self._headers
                )
        except httpx.RequestError as e:
            logger.error(f"Store API unreachable: {type(e).__name__}: {e}")
            raise CheckoutError(GENERIC_FAILURE) from e

        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text or GENERIC_FAILURE}

        if not response.is_success:
            raise CheckoutError(
                data.get("error", GENERIC_FAILURE),
                status_code=response.status_code,
                details=data.get("details"),
            )
        return data

    async def initialize_payment(self, payload: dict) -> dict:
        return await self._post("/payments/initialize", payload)

    async def verify_payment(self, reference: str) -> dict:
        return await self._post("/payments/verify", {"reference": reference})


class CheckoutController:
    """Drives one shopper's checkout against the store API."""

    def __init__(self, cart: CartState, client: StorefrontClient):
        self.cart = cart
        self.client = client

    def build_payment_request(
        self,
        form: CheckoutForm,
        callback_url: Optional[str] = None,
        honeypot: str = "",
    ) -> dict:
        """The initialize payload for the current cart, ready to send as JSON."""
        items = []
        for item in self.cart.items:
            line = {
                "id": item.id,
                "name": item.name,
                "quantity": item.quantity,
                "price": str(item.price),
            }
            if item.size:
                line["size"] = item.size
            if item.image:
                line["image"] = item.image
            items.append(line)

        metadata: dict[str, Any] = {
            "customer_name": form.customer_name,
            "customer_email": str(form.email),
            "phone": form.phone,
            "shipping_address": {
                "address": form.address,
                "city": form.city,
                "postal_code": form.postal_code,
            },
            "items": items,
        }
        if honeypot:
            metadata["honeypot"] = honeypot

        payload: dict[str, Any] = {
            "email": str(form.email),
            "amount": str(self.cart.total_price),
            "metadata": metadata,
        }
        if callback_url:
            payload["callback_url"] = callback_url
        return payload

    async def submit(
        self,
        form: CheckoutForm,
        callback_url: Optional[str] = None,
        honeypot: str = "",
    ) -> str:
        """
        Start payment for the cart and return the Paystack page URL.

        Raises:
            CheckoutError: empty cart, rejected details, or gateway failure.
                The cart is left untouched.
        """
        if self.cart.is_empty():
            raise CheckoutError("Your cart is empty")

        response = await self.client.initialize_payment(
            self.build_payment_request(form, callback_url, honeypot)
        )
        authorization_url = (response.get("data") or {}).get("authorization_url")
        if not authorization_url:
            logger.error("Initialize response carried no authorization_url")
            raise CheckoutError(GENERIC_FAILURE)
        return authorization_url

    async def handle_return(
        self, query_params: Mapping[str, str]
    ) -> Optional[CheckoutOutcome]:
        """
        Verify the payment the customer just returned from.

        Returns None when the URL carries no reference (a plain visit to the
        checkout page). On success the cart is cleared; on any failure it is
        kept so the customer can try again.
        """
        reference = (query_params.get("reference") or "").strip()
        if not reference:
            return None

        try:
            response = await self.client.verify_payment(reference)
        except CheckoutError as e:
            logger.warning(f"Payment verification failed for {reference}: {e.message}")
            return CheckoutOutcome(success=False, reference=reference, message=e.message)

        data = response.get("data") or {}
        if data.get("status") != "success":
            return CheckoutOutcome(
                success=False,
                reference=reference,
                message="Payment was not completed. Your cart has been kept.",
                gateway_response=response,
            )

        self.cart.clear_cart()
        return CheckoutOutcome(
            success=True,
            reference=reference,
            message="Order placed successfully! Check your email for confirmation.",
            order=response.get("order"),
            gateway_response=response,
        )
