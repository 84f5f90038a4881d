"""Store admin router: admin verification, orders, inventory, roles.

Every route here is gated by ``require_store_admin``, which checks the
role table on each request.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.dependencies import is_store_admin, require_store_admin
from services.store_service.errors import StoreError
from services.store_service.models import AppRole, Order, OrderStatus, UserRole
from services.store_service.schemas import (
    AdminVerifyResponse,
    InventoryItemResponse,
    InventoryOverviewResponse,
    InventorySeedRequest,
    InventorySeedResponse,
    InventoryUpdate,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    OrderStatusUpdate,
    PromoteAdminRequest,
    UserRoleResponse,
)
from services.store_service.services.inventory_ops import (
    list_inventory,
    seed_inventory,
    stock_alert_counts,
    update_inventory_item,
)
from services.store_service.services.order_ops import (
    get_order,
    list_all_orders,
    list_orders,
    order_stats,
    orders_to_csv,
    update_order_status,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================================================
# ADMIN VERIFICATION
# ============================================================================


@router.get("/verify", response_model=AdminVerifyResponse)
async def verify_admin(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Server-side admin check for the storefront's admin area.

    Unlike the other admin routes this answers non-admins too (with
    ``is_admin: false``); every check is written to the audit log.
    """
    is_admin = await is_store_admin(db, current_user.user_id)
    logger.info(
        "Admin verification",
        extra={
            "extra_fields": {
                "audit": True,
                "user_id": current_user.user_id,
                "email": current_user.email,
                "is_admin": is_admin,
            }
        },
    )
    return AdminVerifyResponse(
        is_admin=is_admin, user_id=current_user.user_id, verified_at=utc_now()
    )


# ============================================================================
# ORDER MANAGEMENT
# ============================================================================


@router.get("/orders", response_model=OrderListResponse)
async def admin_list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    _admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    orders, total = await list_orders(
        db, status=status_filter, page=page, page_size=page_size
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/orders/stats", response_model=OrderStatsResponse)
async def admin_order_stats(
    _admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_stats(db)


@router.get("/orders/export")
async def admin_export_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Download orders as CSV, newest first."""
    orders = await list_all_orders(db, status=status_filter)
    filename = f"orders-{utc_now():%Y-%m-%d}.csv"
    logger.info(
        "Orders exported",
        extra={
            "extra_fields": {
                "audit": True,
                "admin_id": admin.user_id,
                "count": len(orders),
            }
        },
    )
    return Response(
        content=orders_to_csv(orders),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def admin_get_order(
    order_id: uuid.UUID,
    _admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_order(db, order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def admin_update_order_status(
    order_id: uuid.UUID,
    update: OrderStatusUpdate,
    admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    order = await update_order_status(db, order_id, update.status)
    logger.info(
        "Order status changed by admin",
        extra={
            "extra_fields": {
                "audit": True,
                "admin_id": admin.user_id,
                "order_number": order.order_number,
                "status": order.status.value,
            }
        },
    )
    return order


# ============================================================================
# INVENTORY
# ============================================================================


@router.get("/inventory", response_model=InventoryOverviewResponse)
async def admin_list_inventory(
    low_stock_only: bool = False,
    _admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    items = await list_inventory(db, low_stock_only=low_stock_only)
    low_stock_count, out_of_stock_count = stock_alert_counts(items)
    return InventoryOverviewResponse(
        items=[InventoryItemResponse.model_validate(item) for item in items],
        low_stock_count=low_stock_count,
        out_of_stock_count=out_of_stock_count,
    )


@router.get("/inventory/low-stock", response_model=list[InventoryItemResponse])
async def admin_low_stock_inventory(
    _admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Items at or under their threshold, sold-out items included."""
    return await list_inventory(db, low_stock_only=True)


@router.post(
    "/inventory/seed",
    response_model=InventorySeedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def admin_seed_inventory(
    payload: InventorySeedRequest,
    admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create stock records for catalog products that do not have one yet."""
    created = await seed_inventory(
        db,
        [(p.product_id, p.product_name) for p in payload.products],
        stock_quantity=payload.stock_quantity,
        low_stock_threshold=payload.low_stock_threshold,
    )
    logger.info(
        "Inventory seeded by admin",
        extra={
            "extra_fields": {
                "audit": True,
                "admin_id": admin.user_id,
                "created": len(created),
            }
        },
    )
    return InventorySeedResponse(
        created=len(created),
        items=[InventoryItemResponse.model_validate(item) for item in created],
    )


@router.patch("/inventory/{inventory_id}", response_model=InventoryItemResponse)
async def admin_update_inventory(
    inventory_id: uuid.UUID,
    update: InventoryUpdate,
    admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    item = await update_inventory_item(
        db,
        inventory_id,
        stock_quantity=update.stock_quantity,
        low_stock_threshold=update.low_stock_threshold,
    )
    logger.info(
        "Inventory changed by admin",
        extra={
            "extra_fields": {
                "audit": True,
                "admin_id": admin.user_id,
                "product_id": item.product_id,
                "stock_quantity": item.stock_quantity,
            }
        },
    )
    return item


# ============================================================================
# ROLE MANAGEMENT
# ============================================================================


@router.get("/roles", response_model=list[UserRoleResponse])
async def list_admin_roles(
    _admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(UserRole)
        .where(UserRole.role == AppRole.ADMIN)
        .order_by(UserRole.created_at)
    )
    return result.scalars().all()


@router.post(
    "/roles",
    response_model=UserRoleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def promote_to_admin(
    payload: PromoteAdminRequest,
    admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Grant admin to a customer, found by the email on their orders.

    The user must have placed at least one order while signed in, since
    that is the only place the store sees their user id.
    """
    result = await db.execute(
        select(Order.user_id)
        .where(
            func.lower(Order.customer_email) == str(payload.email).lower(),
            Order.user_id.is_not(None),
        )
        .order_by(Order.created_at.desc())
        .limit(1)
    )
    user_id = result.scalar_one_or_none()
    if not user_id:
        raise StoreError("No signed-in customer found for that email", status_code=404)

    role = UserRole(user_id=user_id, role=AppRole.ADMIN)
    db.add(role)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise StoreError("User is already an admin", status_code=409)
    await db.refresh(role)

    logger.info(
        "Admin role granted",
        extra={
            "extra_fields": {
                "audit": True,
                "admin_id": admin.user_id,
                "target_user_id": user_id,
            }
        },
    )
    return role


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_admin_role(
    role_id: uuid.UUID,
    admin: AuthUser = Depends(require_store_admin),
    db: AsyncSession = Depends(get_async_db),
):
    role = await db.get(UserRole, role_id)
    if not role:
        raise StoreError("Role not found", status_code=404)
    if role.user_id == admin.user_id:
        raise StoreError("You cannot remove your own role", status_code=400)

    target_user_id = role.user_id
    await db.delete(role)
    await db.commit()
    logger.info(
        "Admin role revoked",
        extra={
            "extra_fields": {
                "audit": True,
                "admin_id": admin.user_id,
                "target_user_id": target_user_id,
            }
        },
    )
