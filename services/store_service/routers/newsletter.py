"""Newsletter sign-up."""

from fastapi import APIRouter, Depends, Request
from libs.common.logging import get_logger
from libs.common.rate_limit import api_limit
from libs.db.session import get_async_db
from services.store_service.models import NewsletterSubscriber
from services.store_service.schemas import (
    NewsletterSubscribeRequest,
    NewsletterSubscribeResponse,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/newsletter", tags=["newsletter"])

ALREADY_SUBSCRIBED = NewsletterSubscribeResponse(
    message="You're already subscribed.", already_subscribed=True
)


@router.post("/subscribe", response_model=NewsletterSubscribeResponse)
@api_limit
async def subscribe(
    request: Request,
    payload: NewsletterSubscribeRequest,
    db: AsyncSession = Depends(get_async_db),
):
    email = str(payload.email).strip().lower()

    result = await db.execute(
        select(NewsletterSubscriber.id).where(NewsletterSubscriber.email == email)
    )
    if result.first() is not None:
        return ALREADY_SUBSCRIBED

    db.add(NewsletterSubscriber(email=email))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return ALREADY_SUBSCRIBED

    logger.info("Newsletter subscription added")
    return NewsletterSubscribeResponse(message="Thanks for subscribing!")
