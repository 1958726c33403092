"""Newsletter subscription router."""

from fastapi import APIRouter, Depends, Response, status
from libs.db.session import get_async_db
from services.marketplace_service.schemas import (
    MessageResponse,
    SubscriptionRequest,
    SubscriptionResult,
)
from services.marketplace_service.services import subscription_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["subscriptions"])


@router.post("/subscribe", response_model=SubscriptionResult)
async def subscribe(
    payload: SubscriptionRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
):
    """Subscribe an email; 201 for a new address, 200 when already known."""
    subscription, message, created = await subscription_service.subscribe(
        db, email=payload.email
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return {"message": message, "subscription": subscription}


@router.post("/unsubscribe", response_model=MessageResponse)
async def unsubscribe(
    payload: SubscriptionRequest,
    db: AsyncSession = Depends(get_async_db),
):
    await subscription_service.unsubscribe(db, email=payload.email)
    return {"message": "Successfully unsubscribed from our newsletter"}
