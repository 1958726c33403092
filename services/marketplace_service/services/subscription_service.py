"""Newsletter subscribe / unsubscribe."""

from fastapi import HTTPException, status
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.marketplace_service.models import Subscription
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def _find(db: AsyncSession, email: str) -> Subscription | None:
    result = await db.execute(
        select(Subscription).where(Subscription.email == email.lower())
    )
    return result.scalar_one_or_none()


async def subscribe(db: AsyncSession, *, email: str) -> tuple[Subscription, str, bool]:
    """Returns ``(subscription, message, created)``."""
    subscription = await _find(db, email)

    if subscription is not None and subscription.is_active:
        return subscription, "You are already subscribed to our newsletter", False

    if subscription is not None:
        subscription.is_active = True
        subscription.subscribed_at = utc_now()
        subscription.unsubscribed_at = None
        await db.commit()
        logger.info("Reactivated newsletter subscription %s", subscription.id)
        return subscription, "Successfully resubscribed to our newsletter", False

    subscription = Subscription(email=email.lower(), is_active=True)
    db.add(subscription)
    await db.commit()
    logger.info("New newsletter subscription %s", subscription.id)
    return subscription, "Successfully subscribed to our newsletter", True


async def unsubscribe(db: AsyncSession, *, email: str) -> None:
    subscription = await _find(db, email)
    if subscription is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email not found in our subscription list",
        )

    subscription.is_active = False
    subscription.unsubscribed_at = utc_now()
    await db.commit()
