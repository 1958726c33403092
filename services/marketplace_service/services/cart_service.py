"""Per-user shopping cart."""

import uuid

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.marketplace_service.models import Cart, CartItem, Product, User
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


async def _load_cart(db: AsyncSession, user_id: uuid.UUID) -> Cart | None:
    query = (
        select(Cart)
        .where(Cart.user_id == user_id)
        .options(selectinload(Cart.items).selectinload(CartItem.product))
        .execution_options(populate_existing=True)
    )
    return (await db.execute(query)).scalar_one_or_none()


async def get_or_create_cart(db: AsyncSession, user: User) -> Cart:
    """Return the user's cart, creating it on first access."""
    cart = await _load_cart(db, user.id)
    if cart is None:
        db.add(Cart(user_id=user.id))
        await db.commit()
        cart = await _load_cart(db, user.id)
    return cart


async def get_cart(db: AsyncSession, user: User) -> Cart:
    """Return the cart with lines for missing or inactive products pruned."""
    cart = await get_or_create_cart(db, user)

    stale = [
        item for item in cart.items if item.product is None or not item.product.is_active
    ]
    if stale:
        for item in stale:
            cart.items.remove(item)
        await db.commit()
        logger.info("Pruned %s unavailable item(s) from cart %s", len(stale), cart.id)
        cart = await _load_cart(db, user.id)
    return cart


def _check_stock(product: Product, quantity: int) -> None:
    if quantity > product.stock:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {product.stock} item(s) of {product.name} available in stock",
        )


async def add_item(
    db: AsyncSession, *, user: User, product_id: uuid.UUID, quantity: int = 1
) -> Cart:
    """Add a product; an existing line has its quantity incremented."""
    product = await db.get(Product, product_id)
    if product is None or not product.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    cart = await get_cart(db, user)
    existing = next(
        (item for item in cart.items if item.product_id == product_id), None
    )

    new_quantity = quantity + (existing.quantity if existing else 0)
    _check_stock(product, new_quantity)

    if existing:
        existing.quantity = new_quantity
    else:
        cart.items.append(CartItem(product_id=product_id, quantity=quantity))

    await db.commit()
    return await _load_cart(db, user.id)


def _find_item(cart: Cart, item_id: uuid.UUID) -> CartItem:
    item = next((item for item in cart.items if item.id == item_id), None)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found in cart",
        )
    return item


async def update_item(
    db: AsyncSession, *, user: User, item_id: uuid.UUID, quantity: int
) -> Cart:
    """Set an absolute quantity for one cart line."""
    cart = await get_cart(db, user)
    item = _find_item(cart, item_id)
    _check_stock(item.product, quantity)

    item.quantity = quantity
    await db.commit()
    return await _load_cart(db, user.id)


async def remove_item(db: AsyncSession, *, user: User, item_id: uuid.UUID) -> Cart:
    cart = await get_cart(db, user)
    cart.items.remove(_find_item(cart, item_id))
    await db.commit()
    return await _load_cart(db, user.id)


async def clear_cart(db: AsyncSession, *, user: User) -> Cart:
    cart = await get_or_create_cart(db, user)
    cart.items.clear()
    await db.commit()
    return await _load_cart(db, user.id)
