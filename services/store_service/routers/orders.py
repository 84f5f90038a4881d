"""Customer order lookups: guest tracking and signed-in order history."""

from fastapi import APIRouter, Depends, Query, Request
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import api_limit
from libs.db.session import get_async_db
from services.store_service.schemas import OrderResponse
from services.store_service.services.order_ops import (
    find_order_for_tracking,
    list_orders_for_user,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/track", response_model=OrderResponse)
@api_limit
async def track_order(
    request: Request,
    order_number: str = Query(..., min_length=1, max_length=32),
    email: str = Query(..., min_length=3, max_length=255),
    db: AsyncSession = Depends(get_async_db),
):
    """Look up one order by its number and the email it was placed with."""
    return await find_order_for_tracking(db, order_number, email)


@router.get("/me", response_model=list[OrderResponse])
async def my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_orders_for_user(db, current_user.user_id)
