"""Checkout payment flow: start a Paystack transaction, then verify it into an order."""

import json
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urljoin, urlsplit

from libs.common.config import get_settings
from libs.common.currency import cents_to_rand, rand_to_cents
from libs.common.logging import get_logger
from libs.common.sanitize import sanitize_reference
from pydantic import ValidationError
from services.store_service.errors import (
    CheckoutValidationError,
    GatewayError,
    format_validation_errors,
)
from services.store_service.models import Order
from services.store_service.paystack_client import (
    PAYSTACK_PROVIDER,
    PaystackClient,
    PaystackError,
)
from services.store_service.pricing import PricingPolicy
from services.store_service.schemas import CheckoutMetadata, PaymentInitRequest
from services.store_service.services.order_ops import record_paid_order
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class VerificationOutcome:
    """What verify_payment() learned.

    ``order`` is None when the payment did not succeed, or when it did but
    the order could not be stored. ``created`` is True only for the request
    that actually inserted the order.
    """

    gateway_response: dict
    paid: bool
    order: Optional[Order] = None
    created: bool = False


def _gateway_error(exc: PaystackError) -> GatewayError:
    return GatewayError(exc.message, status_code=exc.status_code or 502)


def honeypot_filled(value: Any) -> bool:
    """Anything but a missing or empty value counts as a bot submission."""
    return value is not None and value != ""


def resolve_callback_url(callback_url: Optional[str]) -> str:
    """
    Where Paystack sends the customer after paying.

    Relative paths are resolved against the storefront. Absolute URLs must
    point at the storefront's own origin.
    """
    settings = get_settings()
    if not callback_url:
        return settings.checkout_callback_url

    frontend = settings.FRONTEND_URL.rstrip("/") + "/"
    resolved = urljoin(frontend, callback_url.strip())
    target, allowed = urlsplit(resolved), urlsplit(frontend)
    if (target.scheme, target.netloc) != (allowed.scheme, allowed.netloc):
        raise CheckoutValidationError(details=["callback_url: must be a storefront URL"])
    return resolved


async def initialize_payment(
    payload: PaymentInitRequest, paystack: PaystackClient
) -> dict:
    """Start a Paystack transaction for a validated checkout.

    The Rand amount is converted to cents exactly once, here. Returns the
    gateway response unchanged.
    """
    if honeypot_filled(payload.metadata.honeypot):
        logger.warning(
            "Checkout honeypot filled; request dropped",
            extra={"extra_fields": {"email": str(payload.email)}},
        )
        raise CheckoutValidationError()

    callback_url = resolve_callback_url(payload.callback_url)
    amount_cents = rand_to_cents(payload.amount)
    metadata = payload.metadata.model_dump(
        mode="json", exclude={"honeypot"}, exclude_none=True
    )

    try:
        response = await paystack.initialize_transaction(
            email=str(payload.email),
            amount_cents=amount_cents,
            metadata=metadata,
            callback_url=callback_url,
        )
    except PaystackError as e:
        logger.error(
            "Payment initialization failed: %s",
            e.message,
            extra={"extra_fields": {"gateway_status": e.status_code}},
        )
        raise _gateway_error(e) from e

    logger.info(
        "Payment initialized",
        extra={
            "extra_fields": {
                "reference": (response.get("data") or {}).get("reference"),
                "amount_cents": amount_cents,
                "item_count": len(payload.metadata.items),
            }
        },
    )
    return response


def parse_checkout_metadata(raw: Any) -> CheckoutMetadata:
    """Re-validate the metadata Paystack echoes back.

    Paystack may hand metadata back as a JSON string rather than an object.
    Everything is sanitized again; the echo is untrusted input.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise CheckoutValidationError(details=["metadata: not valid JSON"]) from e
    if not isinstance(raw, dict):
        raise CheckoutValidationError(details=["metadata: missing"])
    try:
        return CheckoutMetadata.model_validate(raw)
    except ValidationError as e:
        raise CheckoutValidationError(
            details=format_validation_errors(e.errors(), prefix="metadata")
        ) from e


async def verify_payment(
    db: AsyncSession,
    paystack: PaystackClient,
    pricing: PricingPolicy,
    reference: str,
    user_id: Optional[str] = None,
) -> VerificationOutcome:
    """
    Confirm a payment with Paystack and materialize its order.

    Only a gateway status of ``"success"`` creates an order. Replaying the
    same reference returns the order created the first time. A storage
    failure after a successful payment is logged as critical and the
    outcome still reports the payment as paid, with no order.
    """
    clean_reference = sanitize_reference(reference)
    if not clean_reference:
        raise CheckoutValidationError(details=["reference: invalid"])

    try:
        response = await paystack.verify_transaction(clean_reference)
    except PaystackError as e:
        logger.error(
            "Payment verification failed: %s",
            e.message,
            extra={
                "extra_fields": {
                    "reference": clean_reference,
                    "gateway_status": e.status_code,
                }
            },
        )
        raise _gateway_error(e) from e

    data = response.get("data") or {}
    if str(data.get("status", "")).lower() != "success":
        logger.info(
            "Payment not successful",
            extra={
                "extra_fields": {
                    "reference": clean_reference,
                    "gateway_status": data.get("status"),
                }
            },
        )
        return VerificationOutcome(gateway_response=response, paid=False)

    try:
        metadata = parse_checkout_metadata(data.get("metadata"))
    except CheckoutValidationError as e:
        logger.critical(
            "Paid transaction carries unusable metadata; no order created",
            extra={
                "extra_fields": {"reference": clean_reference, "details": e.details}
            },
        )
        raise

    paid_total = cents_to_rand(data.get("amount") or 0)

    try:
        order, created = await record_paid_order(
            db,
            payment_reference=clean_reference,
            metadata=metadata,
            paid_total=paid_total,
            pricing=pricing,
            payment_provider=PAYSTACK_PROVIDER,
            user_id=user_id,
        )
    except SQLAlchemyError:
        logger.critical(
            "Payment %s succeeded but the order could not be saved",
            clean_reference,
            exc_info=True,
            extra={
                "extra_fields": {
                    "reference": clean_reference,
                    "customer_email": str(metadata.customer_email),
                    "total": str(paid_total),
                }
            },
        )
        return VerificationOutcome(gateway_response=response, paid=True)

    return VerificationOutcome(
        gateway_response=response, paid=True, order=order, created=created
    )
