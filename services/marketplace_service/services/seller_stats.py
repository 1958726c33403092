"""Top-seller ranking for the public storefront."""

from decimal import Decimal

from libs.auth.roles import SELLER_ROLES
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    User,
)
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

COUNTED_ORDER_STATUSES = (
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


def seller_score(order_count: int, average_rating: float, product_count: int) -> float:
    return order_count * 10 + average_rating * 2 + product_count


async def _candidate_sellers(db: AsyncSession, limit: int) -> list[User]:
    """Verified active sellers first, backfilled with unverified ones."""
    base = select(User).where(
        User.role.in_(list(SELLER_ROLES)), User.is_active.is_(True)
    )
    verified = (
        (await db.execute(base.where(User.is_verified.is_(True)).order_by(User.created_at)))
        .scalars()
        .all()
    )
    candidates = list(verified)
    if len(candidates) < limit:
        unverified = (
            (
                await db.execute(
                    base.where(User.is_verified.is_(False)).order_by(User.created_at)
                )
            )
            .scalars()
            .all()
        )
        candidates.extend(unverified)
    return candidates


async def get_top_sellers(db: AsyncSession, *, limit: int = 10) -> list[dict]:
    """
    Rank sellers by ``orders*10 + avg_rating*2 + products``.

    Sellers without active products are excluded; the score itself is not
    returned.
    """
    candidates = await _candidate_sellers(db, limit)
    if not candidates:
        return []
    seller_ids = [seller.id for seller in candidates]

    product_rows = await db.execute(
        select(
            Product.seller_id,
            func.count(Product.id),
            func.sum(Product.rating_average * Product.rating_count),
            func.sum(Product.rating_count),
        )
        .where(Product.seller_id.in_(seller_ids), Product.is_active.is_(True))
        .group_by(Product.seller_id)
    )
    product_stats = {
        seller_id: (count, weighted or 0, ratings or 0)
        for seller_id, count, weighted, ratings in product_rows.all()
    }

    order_rows = await db.execute(
        select(Product.seller_id, func.count(distinct(Order.id)))
        .join(OrderItem, OrderItem.product_id == Product.id)
        .join(Order, Order.id == OrderItem.order_id)
        .where(
            Product.seller_id.in_(seller_ids),
            Order.order_status.in_(COUNTED_ORDER_STATUSES),
        )
        .group_by(Product.seller_id)
    )
    order_counts = dict(order_rows.all())

    ranked = []
    for seller in candidates:
        product_count, weighted, rating_total = product_stats.get(seller.id, (0, 0, 0))
        if not product_count:
            continue
        average_rating = (
            round(float(Decimal(weighted) / Decimal(rating_total)), 2)
            if rating_total
            else 0.0
        )
        order_count = order_counts.get(seller.id, 0)
        ranked.append(
            (
                seller_score(order_count, average_rating, product_count),
                {
                    "id": seller.id,
                    "name": seller.name,
                    "email": seller.email,
                    "company_name": seller.company_name,
                    "logo": seller.logo,
                    "avatar": seller.avatar,
                    "city": seller.city,
                    "is_verified": seller.is_verified,
                    "product_count": product_count,
                    "average_rating": average_rating,
                    "order_count": order_count,
                },
            )
        )

    ranked.sort(key=lambda entry: entry[0], reverse=True)
    return [entry for _, entry in ranked[:limit]]
