"""Product catalog: listing, search, CRUD and best sellers."""

import math
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.roles import Capability, has_capability
from libs.common.logging import get_logger
from services.marketplace_service.models import Product, ProductCategory, User
from services.marketplace_service.schemas import ProductUpdate
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

SORT_FIELDS = {
    "created_at": Product.created_at,
    "price": Product.price,
    "name": Product.name,
    "stock": Product.stock,
    "rating": Product.rating_average,
}


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def search_clause(term: str, include_category: bool):
    """Case-insensitive OR across name, description, tags (and category)."""
    clauses = [
        Product.name.icontains(term, autoescape=True),
        Product.description.icontains(term, autoescape=True),
        cast(Product.tags, String).icontains(term, autoescape=True),
    ]
    if include_category:
        clauses.append(cast(Product.category, String).icontains(term, autoescape=True))
    return or_(*clauses)


async def list_products(
    db: AsyncSession,
    *,
    category: Optional[ProductCategory] = None,
    seller_id: Optional[uuid.UUID] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    order: str = "desc",
    page: int = 1,
    limit: int = 20,
    is_active: Optional[bool] = True,
) -> tuple[list[Product], int]:
    """
    Filtered, sorted, paginated product query.

    ``is_active=None`` lifts the active filter (admin listings).
    Returns ``(products, total)``.
    """
    conditions = []
    if is_active is not None:
        conditions.append(Product.is_active.is_(is_active))
    if category:
        conditions.append(Product.category == category)
    if seller_id:
        conditions.append(Product.seller_id == seller_id)
    if min_price is not None:
        conditions.append(Product.price >= min_price)
    if max_price is not None:
        conditions.append(Product.price <= max_price)
    if search and search.strip():
        conditions.append(search_clause(search.strip(), include_category=category is None))

    count_query = select(func.count(Product.id)).where(*conditions)
    total = (await db.execute(count_query)).scalar_one()

    sort_column = SORT_FIELDS.get(sort_by, Product.created_at)
    ordering = sort_column.asc() if order == "asc" else sort_column.desc()

    query = (
        select(Product)
        .where(*conditions)
        .options(selectinload(Product.seller))
        .order_by(ordering, Product.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_product(
    db: AsyncSession, product_id: uuid.UUID, *, active_only: bool = False
) -> Product:
    query = (
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.seller))
        .execution_options(populate_existing=True)
    )
    product = (await db.execute(query)).scalar_one_or_none()
    if product is None or (active_only and not product.is_active):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


def can_manage_product(user: User, product: Product) -> bool:
    """Owner, or a role allowed to manage any product."""
    return product.seller_id == user.id or has_capability(
        user.role, Capability.MANAGE_ANY_PRODUCT
    )


def _ensure_can_manage(user: User, product: Product) -> None:
    if not can_manage_product(user, product):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this product",
        )


async def create_product(
    db: AsyncSession,
    *,
    seller: User,
    name: str,
    description: str,
    price: Decimal,
    category: ProductCategory,
    stock: int,
    images: list[str],
    original_price: Optional[Decimal] = None,
    subcategory: Optional[str] = None,
    brand: Optional[str] = None,
    tags: Optional[list[str]] = None,
    specifications: Optional[dict] = None,
) -> Product:
    if not images:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one product image is required",
        )
    if not name.strip() or not description.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: name, description, price, category, and stock are required",
        )

    product = Product(
        name=name.strip(),
        description=description.strip(),
        price=price,
        original_price=original_price,
        category=category,
        stock=stock,
        images=images,
        subcategory=subcategory,
        brand=brand,
        tags=tags or [],
        specifications=specifications or {},
        seller_id=seller.id,
    )
    db.add(product)
    await db.commit()

    logger.info("Seller %s created product %s", seller.id, product.id)
    return await get_product(db, product.id)


async def update_product(
    db: AsyncSession, *, product_id: uuid.UUID, user: User, payload: ProductUpdate
) -> Product:
    product = await get_product(db, product_id)
    _ensure_can_manage(user, product)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in ("original_price", "subcategory", "brand"):
            continue
        setattr(product, field, value)

    await db.commit()
    logger.info("User %s updated product %s", user.id, product.id)
    return await get_product(db, product.id)


async def delete_product(db: AsyncSession, *, product_id: uuid.UUID, user: User) -> None:
    product = await get_product(db, product_id)
    _ensure_can_manage(user, product)

    await db.delete(product)
    await db.commit()
    logger.info("User %s deleted product %s", user.id, product_id)


async def add_product_images(
    db: AsyncSession, *, product_id: uuid.UUID, user: User, urls: list[str]
) -> Product:
    product = await get_product(db, product_id)
    _ensure_can_manage(user, product)

    # Reassign so the JSON column is flagged dirty
    product.images = [*(product.images or []), *urls]
    await db.commit()
    return await get_product(db, product.id)


async def list_best_sellers(db: AsyncSession, *, limit: int = 8) -> list[Product]:
    query = (
        select(Product)
        .where(Product.is_active.is_(True), Product.is_best_seller.is_(True))
        .options(selectinload(Product.seller))
        .order_by(Product.rating_count.desc(), Product.updated_at.desc())
        .limit(limit)
    )
    return list((await db.execute(query)).scalars().all())


async def set_best_seller(
    db: AsyncSession, *, product_id: uuid.UUID, is_best_seller: bool
) -> Product:
    product = await get_product(db, product_id)
    product.is_best_seller = is_best_seller
    await db.commit()
    return await get_product(db, product.id)
