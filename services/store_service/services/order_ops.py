"""Order persistence: idempotent creation from a verified payment, lookups, admin stats and CSV export."""

import csv
import io
import uuid
from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.errors import OrderNotFoundError
from services.store_service.models import Order, OrderStatus, PaymentStatus
from services.store_service.pricing import PricingPolicy
from services.store_service.schemas import CheckoutMetadata
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Order numbers carry a random suffix; a clash just means drawing again.
MAX_ORDER_NUMBER_ATTEMPTS = 3


def item_to_record(item) -> dict:
    """Flatten a validated cart line into the JSON stored on the order."""
    record = item.model_dump(exclude_none=True)
    record["price"] = float(item.price)
    return record


async def get_order_by_reference(
    db: AsyncSession, payment_reference: str
) -> Optional[Order]:
    result = await db.execute(
        select(Order).where(Order.payment_reference == payment_reference)
    )
    return result.scalar_one_or_none()


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    order = await db.get(Order, order_id)
    if not order:
        raise OrderNotFoundError()
    return order


async def record_paid_order(
    db: AsyncSession,
    *,
    payment_reference: str,
    metadata: CheckoutMetadata,
    paid_total: Decimal,
    pricing: PricingPolicy,
    payment_provider: str,
    user_id: Optional[str] = None,
) -> tuple[Order, bool]:
    """Create the order for a successful payment, at most once per reference.

    Returns ``(order, created)``. When the reference is already recorded,
    either before we looked or by a concurrent request racing us to the
    unique constraint, the existing order comes back with ``created=False``.
    """
    existing = await get_order_by_reference(db, payment_reference)
    if existing:
        return existing, False

    items = [item_to_record(item) for item in metadata.items]
    totals = pricing.split(paid_total, items)
    shipping_address = metadata.shipping_address.model_dump(exclude_none=True)

    for attempt in range(1, MAX_ORDER_NUMBER_ATTEMPTS + 1):
        order = Order(
            order_number=Order.generate_order_number(),
            user_id=user_id,
            customer_email=str(metadata.customer_email),
            customer_name=metadata.customer_name,
            customer_phone=metadata.phone or None,
            items=items,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax=totals.tax,
            total=totals.total,
            status=OrderStatus.CONFIRMED,
            payment_status=PaymentStatus.COMPLETED,
            payment_reference=payment_reference,
            payment_provider=payment_provider,
            shipping_address=shipping_address,
        )
        db.add(order)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = await get_order_by_reference(db, payment_reference)
            if existing:
                logger.info(
                    "Order for reference %s was created concurrently",
                    payment_reference,
                )
                return existing, False
            if attempt == MAX_ORDER_NUMBER_ATTEMPTS:
                raise
            logger.warning("Order number clash, retrying (attempt %d)", attempt)
            continue

        await db.refresh(order)
        logger.info(
            "Order %s created",
            order.order_number,
            extra={
                "extra_fields": {
                    "order_number": order.order_number,
                    "payment_reference": payment_reference,
                    "total": str(order.total),
                }
            },
        )
        return order, True

    raise RuntimeError("unreachable")


async def find_order_for_tracking(
    db: AsyncSession, order_number: str, email: str
) -> Order:
    """Guest order lookup; both the number and the customer email must match."""
    result = await db.execute(
        select(Order).where(
            Order.order_number == order_number.strip().upper(),
            func.lower(Order.customer_email) == email.strip().lower(),
        )
    )
    order = result.scalar_one_or_none()
    if not order:
        raise OrderNotFoundError()
    return order


async def list_orders_for_user(db: AsyncSession, user_id: str) -> list[Order]:
    result = await db.execute(
        select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def list_orders(
    db: AsyncSession,
    *,
    status: Optional[OrderStatus] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Order], int]:
    query = select(Order)
    count_query = select(func.count(Order.id))
    if status:
        query = query.where(Order.status == status)
        count_query = count_query.where(Order.status == status)

    total = (await db.execute(count_query)).scalar_one()
    query = (
        query.order_by(Order.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def update_order_status(
    db: AsyncSession, order_id: uuid.UUID, new_status: OrderStatus
) -> Order:
    order = await get_order(db, order_id)
    old_status = order.status
    order.status = new_status
    await db.commit()
    await db.refresh(order)
    logger.info(
        "Order %s status %s -> %s",
        order.order_number,
        old_status.value,
        new_status.value,
    )
    return order


async def order_stats(db: AsyncSession) -> dict:
    """Dashboard counts.

    Revenue sums completed payments; "pending" covers pending and processing,
    "completed" means delivered.
    """
    total_orders = (await db.execute(select(func.count(Order.id)))).scalar_one()
    total_revenue = (
        await db.execute(
            select(func.coalesce(func.sum(Order.total), 0)).where(
                Order.payment_status == PaymentStatus.COMPLETED
            )
        )
    ).scalar_one()
    pending_orders = (
        await db.execute(
            select(func.count(Order.id)).where(
                Order.status.in_((OrderStatus.PENDING, OrderStatus.PROCESSING))
            )
        )
    ).scalar_one()
    completed_orders = (
        await db.execute(
            select(func.count(Order.id)).where(Order.status == OrderStatus.DELIVERED)
        )
    ).scalar_one()
    return {
        "total_orders": total_orders,
        "total_revenue": Decimal(str(total_revenue)),
        "pending_orders": pending_orders,
        "completed_orders": completed_orders,
    }


# ============================================================================
# EXPORT
# ============================================================================

ORDER_EXPORT_COLUMNS = [
    "Order Number",
    "Customer Name",
    "Customer Email",
    "Date",
    "Items",
    "Total (R)",
    "Payment Status",
    "Order Status",
]

# Spreadsheet apps evaluate cells starting with these as formulas.
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def _csv_text(value: str) -> str:
    if value.startswith(_FORMULA_PREFIXES):
        return f"'{value}"
    return value


async def list_all_orders(
    db: AsyncSession, *, status: Optional[OrderStatus] = None
) -> list[Order]:
    query = select(Order).order_by(Order.created_at.desc())
    if status:
        query = query.where(Order.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


def orders_to_csv(orders: list[Order]) -> str:
    """
    One row per order, every cell quoted with embedded quotes doubled.

    Customer-entered text is prefixed with ``'`` when a spreadsheet would
    read it as a formula.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(ORDER_EXPORT_COLUMNS)
    for order in orders:
        writer.writerow(
            [
                order.order_number,
                _csv_text(order.customer_name),
                _csv_text(order.customer_email),
                order.created_at.strftime("%Y-%m-%d %H:%M"),
                len(order.items or []),
                f"{order.total:.2f}",
                order.payment_status.value,
                order.status.value,
            ]
        )
    return buffer.getvalue()
