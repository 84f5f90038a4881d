"""Inventory bookkeeping for the admin back-office: list, seed, edit stock levels."""

import uuid
from typing import Iterable, Optional

from libs.common.logging import get_logger
from services.store_service.errors import InventoryItemNotFoundError
from services.store_service.models import InventoryItem
from services.store_service.models.inventory import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_STOCK_QUANTITY,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def list_inventory(
    db: AsyncSession, *, low_stock_only: bool = False
) -> list[InventoryItem]:
    """All stock records by product name.

    ``low_stock_only`` keeps items at or under their threshold, sold-out
    items included.
    """
    query = select(InventoryItem)
    if low_stock_only:
        query = query.where(
            InventoryItem.stock_quantity <= InventoryItem.low_stock_threshold
        )
    result = await db.execute(query.order_by(InventoryItem.product_name))
    return list(result.scalars().all())


def stock_alert_counts(items: Iterable[InventoryItem]) -> tuple[int, int]:
    """``(low_stock, out_of_stock)``; the two never overlap."""
    low = out = 0
    for item in items:
        if item.is_out_of_stock:
            out += 1
        elif item.is_low_stock:
            low += 1
    return low, out


async def seed_inventory(
    db: AsyncSession,
    products: Iterable[tuple[int, str]],
    *,
    stock_quantity: int = DEFAULT_STOCK_QUANTITY,
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> list[InventoryItem]:
    """
    Create stock records for products that have none yet.

    Products already tracked are left untouched, so seeding twice is safe.
    Returns only the records created by this call.
    """
    wanted: dict[int, str] = {}
    for product_id, product_name in products:
        wanted.setdefault(product_id, product_name)
    if not wanted:
        return []

    result = await db.execute(
        select(InventoryItem.product_id).where(
            InventoryItem.product_id.in_(wanted.keys())
        )
    )
    existing = set(result.scalars().all())

    created = [
        InventoryItem(
            product_id=product_id,
            product_name=product_name,
            stock_quantity=stock_quantity,
            low_stock_threshold=low_stock_threshold,
        )
        for product_id, product_name in wanted.items()
        if product_id not in existing
    ]
    if not created:
        logger.info("All products already have inventory records")
        return []

    db.add_all(created)
    await db.commit()
    for item in created:
        await db.refresh(item)

    logger.info(
        "Inventory initialized",
        extra={
            "extra_fields": {
                "created": len(created),
                "skipped": len(existing),
            }
        },
    )
    return created


async def update_inventory_item(
    db: AsyncSession,
    inventory_id: uuid.UUID,
    *,
    stock_quantity: Optional[int] = None,
    low_stock_threshold: Optional[int] = None,
) -> InventoryItem:
    item = await db.get(InventoryItem, inventory_id)
    if not item:
        raise InventoryItemNotFoundError()

    old_quantity = item.stock_quantity
    if stock_quantity is not None:
        item.stock_quantity = stock_quantity
    if low_stock_threshold is not None:
        item.low_stock_threshold = low_stock_threshold

    await db.commit()
    await db.refresh(item)
    logger.info(
        "Inventory updated for %s",
        item.product_name,
        extra={
            "extra_fields": {
                "product_id": item.product_id,
                "old_quantity": old_quantity,
                "new_quantity": item.stock_quantity,
                "low_stock_threshold": item.low_stock_threshold,
            }
        },
    )
    return item
