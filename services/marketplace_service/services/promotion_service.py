"""Promotion engine: discount computation and campaign lifecycle.

A product carries at most one promotion. Re-applying always computes from
the stored ``original_price`` so the pre-promotion price is never lost.
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.roles import Capability, has_capability
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    DiscountType,
    Product,
    Promotion,
    PromotionType,
    User,
    promotion_products,
)
from services.marketplace_service.schemas import PromotionCreate, PromotionUpdate
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")

# Fields whose change requires re-pricing the promotion's products
PRICING_FIELDS = {"discount_type", "discount_value", "max_discount", "start_date", "end_date"}


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_sale_price(
    base_price: Decimal,
    discount_type: DiscountType,
    discount_value: Decimal,
    max_discount: Optional[Decimal] = None,
) -> tuple[Decimal, Decimal]:
    """
    Return ``(sale_price, discount_percentage)`` for one product.

    Percentage discounts are clamped to ``max_discount`` when a cap is set;
    fixed amounts never take the price below zero.
    """
    base_price = Decimal(base_price)
    discount_value = Decimal(discount_value)

    if discount_type == DiscountType.PERCENTAGE:
        discount_amount = base_price * discount_value / HUNDRED
        sale_price = base_price - discount_amount
        percentage = discount_value
        if max_discount and discount_amount > max_discount:
            sale_price = base_price - Decimal(max_discount)
            percentage = (
                Decimal(max_discount) / base_price * HUNDRED if base_price else Decimal("0")
            )
    else:
        sale_price = max(Decimal("0"), base_price - discount_value)
        percentage = (
            min(HUNDRED, discount_value / base_price * HUNDRED)
            if base_price
            else Decimal("0")
        )

    return _money(sale_price), _money(percentage)


def apply_promotion_to_products(promotion: Promotion, products: list[Product]) -> None:
    """Re-price ``products`` in place under ``promotion`` (no commit)."""
    for product in products:
        if product.promotion_id is not None and product.original_price is not None:
            base_price = product.original_price
        else:
            base_price = product.price

        sale_price, percentage = compute_sale_price(
            base_price,
            promotion.discount_type,
            promotion.discount_value,
            promotion.max_discount,
        )

        product.on_sale = promotion.is_active
        product.original_price = base_price
        product.sale_price = sale_price
        product.price = sale_price
        product.sale_start_date = promotion.start_date
        product.sale_end_date = promotion.end_date
        product.promotion_id = promotion.id
        product.discount_percentage = percentage


def clear_promotion_fields(product: Product) -> None:
    """Take a product off promotion and restore its pre-promotion price."""
    if product.original_price is not None and product.promotion_id is not None:
        product.price = product.original_price
        product.original_price = None
    product.on_sale = False
    product.sale_price = None
    product.sale_start_date = None
    product.sale_end_date = None
    product.discount_percentage = None
    product.promotion_id = None


def _check_dates(start_date, end_date) -> None:
    if ensure_utc(start_date) >= ensure_utc(end_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )


def _ensure_can_edit(user: User, promotion: Promotion) -> None:
    if promotion.created_by != user.id and not has_capability(
        user.role, Capability.MANAGE_PROMOTIONS
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )


async def get_promotion(db: AsyncSession, promotion_id: uuid.UUID) -> Promotion:
    query = (
        select(Promotion)
        .where(Promotion.id == promotion_id)
        .options(selectinload(Promotion.products))
        .execution_options(populate_existing=True)
    )
    promotion = (await db.execute(query)).scalar_one_or_none()
    if promotion is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Promotion not found",
        )
    return promotion


async def _load_products(db: AsyncSession, product_ids: list[uuid.UUID]) -> list[Product]:
    if not product_ids:
        return []
    result = await db.execute(
        select(Product)
        .where(Product.id.in_(product_ids))
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _attach_products(
    db: AsyncSession, promotion: Promotion, products: list[Product]
) -> None:
    """Move products onto ``promotion``, detaching them from any other one."""
    if not products:
        return
    product_ids = [product.id for product in products]
    await db.execute(
        delete(promotion_products).where(
            promotion_products.c.product_id.in_(product_ids),
            promotion_products.c.promotion_id != promotion.id,
        )
    )
    current = {product.id for product in promotion.products}
    for product in products:
        if product.id not in current:
            promotion.products.append(product)
    apply_promotion_to_products(promotion, products)


async def create_promotion(
    db: AsyncSession, *, user: User, payload: PromotionCreate
) -> Promotion:
    _check_dates(payload.start_date, payload.end_date)

    data = payload.model_dump(exclude={"products", "start_date", "end_date"})
    data["categories"] = [category.value for category in payload.categories]
    promotion = Promotion(
        **data,
        start_date=ensure_utc(payload.start_date),
        end_date=ensure_utc(payload.end_date),
        created_by=user.id,
        products=[],
    )
    db.add(promotion)
    await db.flush()

    products = await _load_products(db, payload.products)
    await _attach_products(db, promotion, products)

    await db.commit()
    logger.info(
        "User %s created promotion %s covering %s product(s)",
        user.id,
        promotion.id,
        len(products),
    )
    return await get_promotion(db, promotion.id)


async def list_promotions(
    db: AsyncSession,
    *,
    active: bool = False,
    promotion_type: Optional[PromotionType] = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Promotion], int]:
    """``active=True`` keeps active promotions whose window contains now."""
    conditions = []
    if active:
        now = utc_now()
        conditions.extend(
            [
                Promotion.is_active.is_(True),
                Promotion.start_date <= now,
                Promotion.end_date >= now,
            ]
        )
    if promotion_type:
        conditions.append(Promotion.type == promotion_type)

    total = (
        await db.execute(select(func.count(Promotion.id)).where(*conditions))
    ).scalar_one()
    query = (
        select(Promotion)
        .where(*conditions)
        .options(selectinload(Promotion.products))
        .order_by(Promotion.created_at.desc(), Promotion.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list((await db.execute(query)).scalars().all()), total


async def update_promotion(
    db: AsyncSession, *, promotion_id: uuid.UUID, user: User, payload: PromotionUpdate
) -> Promotion:
    promotion = await get_promotion(db, promotion_id)
    _ensure_can_edit(user, promotion)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("categories") is not None:
        changes["categories"] = [category.value for category in payload.categories]
    for field in ("start_date", "end_date"):
        if changes.get(field) is not None:
            changes[field] = ensure_utc(changes[field])

    _check_dates(
        changes.get("start_date") or promotion.start_date,
        changes.get("end_date") or promotion.end_date,
    )

    discount_type = changes.get("discount_type") or promotion.discount_type
    discount_value = changes.get("discount_value")
    if discount_value is None:
        discount_value = promotion.discount_value
    if discount_type == DiscountType.PERCENTAGE and discount_value > HUNDRED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Percentage discount cannot exceed 100",
        )

    for field, value in changes.items():
        if value is None and field not in ("max_discount", "description"):
            continue
        setattr(promotion, field, value)

    if PRICING_FIELDS & changes.keys() and promotion.products:
        apply_promotion_to_products(promotion, list(promotion.products))

    await db.commit()
    logger.info("User %s updated promotion %s", user.id, promotion.id)
    return await get_promotion(db, promotion.id)


async def delete_promotion(db: AsyncSession, *, promotion_id: uuid.UUID) -> None:
    """Delete the campaign and restore every affected product's price."""
    promotion = await get_promotion(db, promotion_id)

    result = await db.execute(select(Product).where(Product.promotion_id == promotion.id))
    reverted = list(result.scalars().all())
    for product in reverted:
        clear_promotion_fields(product)

    await db.delete(promotion)
    await db.commit()
    logger.info(
        "Deleted promotion %s and reverted %s product(s)", promotion_id, len(reverted)
    )


async def apply_to_products(
    db: AsyncSession, *, promotion_id: uuid.UUID, product_ids: list[uuid.UUID]
) -> list[Product]:
    promotion = await get_promotion(db, promotion_id)
    products = await _load_products(db, product_ids)
    if not products:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No matching products found",
        )

    await _attach_products(db, promotion, products)
    await db.commit()
    logger.info("Applied promotion %s to %s product(s)", promotion.id, len(products))
    return products


async def remove_from_products(
    db: AsyncSession, *, product_ids: list[uuid.UUID]
) -> list[Product]:
    products = await _load_products(db, product_ids)
    for product in products:
        clear_promotion_fields(product)

    await db.execute(
        delete(promotion_products).where(
            promotion_products.c.product_id.in_(product_ids)
        )
    )
    await db.commit()
    return products


async def toggle_promotion_status(
    db: AsyncSession, *, promotion_id: uuid.UUID
) -> Promotion:
    """Flip ``is_active`` and mirror it onto ``on_sale`` without re-pricing."""
    promotion = await get_promotion(db, promotion_id)
    promotion.is_active = not promotion.is_active

    result = await db.execute(select(Product).where(Product.promotion_id == promotion.id))
    for product in result.scalars().all():
        product.on_sale = promotion.is_active

    await db.commit()
    logger.info(
        "Promotion %s %s",
        promotion.id,
        "activated" if promotion.is_active else "deactivated",
    )
    return await get_promotion(db, promotion.id)
