"""Admin dashboard: statistics and user, product and order management."""

import uuid
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.roles import ELEVATED_ROLES, SELLER_ROLES
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    Review,
    User,
    UserRole,
    promotion_products,
)
from services.marketplace_service.schemas import AdminUserUpdate
from services.marketplace_service.services.catalog_service import get_product
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


async def _count(db: AsyncSession, model, *conditions) -> int:
    return (await db.execute(select(func.count(model.id)).where(*conditions))).scalar_one()


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


async def get_dashboard_stats(db: AsyncSession) -> dict:
    is_provider = User.role.in_(list(SELLER_ROLES))
    return {
        "total_users": await _count(db, User),
        "total_providers": await _count(db, User, is_provider),
        "verified_providers": await _count(db, User, is_provider, User.is_verified.is_(True)),
        "pending_verification": await _count(
            db, User, is_provider, User.is_verified.is_(False)
        ),
        "total_products": await _count(db, Product),
        "active_products": await _count(db, Product, Product.is_active.is_(True)),
        "total_orders": await _count(db, Order),
        "pending_orders": await _count(db, Order, Order.order_status == OrderStatus.PENDING),
    }


async def get_order_stats(db: AsyncSession) -> dict:
    rows = await db.execute(
        select(Order.order_status, func.count(Order.id)).group_by(Order.order_status)
    )
    by_status = {order_status: count for order_status, count in rows.all()}

    revenue = await db.scalar(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.order_status == OrderStatus.DELIVERED,
            Order.payment_status == PaymentStatus.PAID,
        )
    )
    pending_payment = await db.scalar(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.payment_status == PaymentStatus.PENDING
        )
    )

    return {
        "total_orders": sum(by_status.values()),
        "pending_orders": by_status.get(OrderStatus.PENDING, 0),
        "processing_orders": by_status.get(OrderStatus.PROCESSING, 0),
        "shipped_orders": by_status.get(OrderStatus.SHIPPED, 0),
        "delivered_orders": by_status.get(OrderStatus.DELIVERED, 0),
        "cancelled_orders": by_status.get(OrderStatus.CANCELLED, 0),
        "total_revenue": Decimal(str(revenue or 0)),
        "pending_payment": Decimal(str(pending_payment or 0)),
    }


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


async def list_users(
    db: AsyncSession,
    *,
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[User], int]:
    conditions = []
    if role:
        conditions.append(User.role == role)
    if search and search.strip():
        term = search.strip()
        conditions.append(
            or_(
                User.name.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            )
        )

    total = await _count(db, User, *conditions)
    query = (
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list((await db.execute(query)).scalars().all()), total


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


async def update_user(
    db: AsyncSession, *, user_id: uuid.UUID, payload: AdminUserUpdate
) -> User:
    user = await get_user(db, user_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    logger.info("Admin updated user %s", user.id)
    return user


async def delete_user(db: AsyncSession, *, user_id: uuid.UUID) -> None:
    """Hard-delete a non-admin user together with their products."""
    user = await get_user(db, user_id)
    if user.role in ELEVATED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot delete admin users",
        )

    product_ids = select(Product.id).where(Product.seller_id == user.id)
    await db.execute(
        delete(promotion_products).where(promotion_products.c.product_id.in_(product_ids))
    )
    await db.execute(delete(CartItem).where(CartItem.product_id.in_(product_ids)))
    await db.execute(delete(Review).where(Review.product_id.in_(product_ids)))
    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id.in_(product_ids))
        .values(product_id=None)
    )
    await db.execute(delete(Product).where(Product.seller_id == user.id))
    await db.execute(update(Order).where(Order.user_id == user.id).values(user_id=None))

    await db.delete(user)
    await db.commit()
    logger.info("Admin deleted user %s and their products", user_id)


async def verify_provider(db: AsyncSession, *, user_id: uuid.UUID) -> User:
    user = await get_user(db, user_id)
    if user.role not in SELLER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is not a provider",
        )
    user.is_verified = True
    await db.commit()
    await db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


async def admin_delete_product(db: AsyncSession, *, product_id: uuid.UUID) -> None:
    product = await get_product(db, product_id)
    await db.delete(product)
    await db.commit()
    logger.info("Admin deleted product %s", product_id)


async def toggle_product_status(db: AsyncSession, *, product_id: uuid.UUID) -> Product:
    product = await get_product(db, product_id)
    product.is_active = not product.is_active
    await db.commit()
    return await get_product(db, product.id)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


async def list_orders(
    db: AsyncSession,
    *,
    order_status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Order], int]:
    conditions = []
    if order_status:
        conditions.append(Order.order_status == order_status)
    if payment_status:
        conditions.append(Order.payment_status == payment_status)
    if search and search.strip():
        term = search.strip()
        matching_users = select(User.id).where(
            or_(
                User.name.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            )
        )
        conditions.append(
            or_(
                Order.order_number.icontains(term, autoescape=True),
                Order.user_id.in_(matching_users),
            )
        )

    total = await _count(db, Order, *conditions)
    query = (
        select(Order)
        .where(*conditions)
        .options(selectinload(Order.items), selectinload(Order.user))
        .order_by(Order.created_at.desc(), Order.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list((await db.execute(query)).scalars().all()), total
