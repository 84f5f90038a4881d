"""Payment router: initialize a Paystack checkout and verify it on return."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from libs.auth.dependencies import get_optional_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.emails.client import EmailClient, get_email_client
from libs.common.emails.store import send_order_confirmation_email
from libs.common.rate_limit import payment_limit
from libs.db.session import get_async_db
from services.store_service.dependencies import get_paystack_client
from services.store_service.paystack_client import PaystackClient
from services.store_service.pricing import PricingPolicy, get_pricing_policy
from services.store_service.schemas import (
    OrderResponse,
    PaymentInitRequest,
    PaymentVerifyRequest,
)
from services.store_service.services.payment_ops import (
    initialize_payment,
    verify_payment,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/initialize")
@payment_limit
async def initialize(
    request: Request,
    payload: PaymentInitRequest,
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """
    Validate the checkout and start a Paystack transaction.

    Returns Paystack's response; ``data.authorization_url`` is where the
    browser goes next.
    """
    return await initialize_payment(payload, paystack)


@router.post("/verify")
@payment_limit
async def verify(
    request: Request,
    payload: PaymentVerifyRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
    pricing: PricingPolicy = Depends(get_pricing_policy),
    email_client: EmailClient = Depends(get_email_client),
    current_user: Optional[AuthUser] = Depends(get_optional_user),
):
    """
    Verify a transaction and record its order.

    Safe to call repeatedly with the same reference. The confirmation email
    goes out once, after the response, for the call that created the order.
    """
    outcome = await verify_payment(
        db,
        paystack,
        pricing,
        payload.reference,
        user_id=current_user.user_id if current_user else None,
    )
    if not outcome.paid:
        return outcome.gateway_response

    order = outcome.order
    if order is not None and outcome.created:
        background_tasks.add_task(
            send_order_confirmation_email,
            email_client,
            to_email=order.customer_email,
            customer_name=order.customer_name,
            order_number=order.order_number,
            items=list(order.items),
            total=order.total,
            shipping_address=order.shipping_address,
            store_name=get_settings().STORE_NAME,
        )

    return {
        **outcome.gateway_response,
        "order": (
            OrderResponse.model_validate(order).model_dump(mode="json")
            if order is not None
            else None
        ),
    }
