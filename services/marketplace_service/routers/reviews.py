"""Product review router."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import CurrentUser
from services.marketplace_service.schemas import ReviewCreate, ReviewResponse
from services.marketplace_service.services import review_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["reviews"])


@router.get("/{product_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await review_service.list_reviews(db, product_id=product_id)


@router.post(
    "/{product_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    product_id: uuid.UUID,
    payload: ReviewCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    """Review a product; verified when the caller has a delivered order for it."""
    return await review_service.create_review(
        db, product_id=product_id, user=current_user, payload=payload
    )
