"""FastAPI dependencies shared by the store routers."""

from fastapi import Depends, HTTPException, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.errors import GatewayError
from services.store_service.models import AppRole, UserRole
from services.store_service.paystack_client import PaystackClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def get_paystack_client() -> PaystackClient:
    """Return a PaystackClient, or fail with 503 when Paystack is not configured."""
    try:
        return PaystackClient()
    except ValueError:
        logger.error("Paystack secret key missing; payments disabled")
        raise GatewayError("Payments are currently unavailable.", status_code=503)


async def is_store_admin(db: AsyncSession, user_id: str) -> bool:
    """Authoritative admin check against the role table."""
    result = await db.execute(
        select(UserRole.id).where(
            UserRole.user_id == user_id, UserRole.role == AppRole.ADMIN
        )
    )
    return result.first() is not None


async def require_store_admin(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> AuthUser:
    """
    Allow the request only once the role table confirms admin.

    Token claims are never trusted for this decision.
    """
    if not await is_store_admin(db, current_user.user_id):
        logger.warning(
            "Admin access denied",
            extra={"extra_fields": {"user_id": current_user.user_id}},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
