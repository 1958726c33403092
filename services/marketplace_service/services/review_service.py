"""Product reviews and the rating aggregate kept on each product."""

import uuid
from decimal import ROUND_HALF_UP, Decimal

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Review,
    User,
)
from services.marketplace_service.schemas import ReviewCreate
from services.marketplace_service.services.catalog_service import get_product
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


async def list_reviews(db: AsyncSession, *, product_id: uuid.UUID) -> list[Review]:
    await get_product(db, product_id)
    query = (
        select(Review)
        .where(Review.product_id == product_id)
        .options(selectinload(Review.user))
        .order_by(Review.created_at.desc())
    )
    return list((await db.execute(query)).scalars().all())


async def _delivered_order_id(
    db: AsyncSession, user_id: uuid.UUID, product_id: uuid.UUID
) -> uuid.UUID | None:
    query = (
        select(Order.id)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .where(
            Order.user_id == user_id,
            Order.order_status == OrderStatus.DELIVERED,
            OrderItem.product_id == product_id,
        )
        .limit(1)
    )
    return await db.scalar(query)


async def recompute_rating(db: AsyncSession, product: Product) -> None:
    average, count = (
        await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.product_id == product.id
            )
        )
    ).one()
    product.rating_count = count or 0
    product.rating_average = Decimal(str(average or 0)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )


async def create_review(
    db: AsyncSession, *, product_id: uuid.UUID, user: User, payload: ReviewCreate
) -> Review:
    """One review per user per product; verified when a delivered order exists."""
    product = await get_product(db, product_id, active_only=True)

    existing = await db.scalar(
        select(Review.id).where(
            Review.product_id == product.id, Review.user_id == user.id
        )
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You have already reviewed this product",
        )

    order_id = await _delivered_order_id(db, user.id, product.id)
    review = Review(
        user_id=user.id,
        product_id=product.id,
        order_id=order_id,
        rating=payload.rating,
        comment=payload.comment,
        images=payload.images,
        is_verified=order_id is not None,
    )
    db.add(review)
    await db.flush()

    await recompute_rating(db, product)
    await db.commit()

    logger.info("User %s reviewed product %s (%s/5)", user.id, product.id, review.rating)
    result = await db.execute(
        select(Review).where(Review.id == review.id).options(selectinload(Review.user))
    )
    return result.scalar_one()
