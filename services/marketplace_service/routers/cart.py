"""Shopping cart router. Every route acts on the caller's own cart."""

import uuid

from fastapi import APIRouter, Depends
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import CurrentUser
from services.marketplace_service.schemas import (
    CartItemCreate,
    CartItemUpdate,
    CartResponse,
)
from services.marketplace_service.services import cart_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    """Get the current user's cart, creating it on first access."""
    return await cart_service.get_cart(db, current_user)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    payload: CartItemCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_service.add_item(
        db, user=current_user, product_id=payload.product_id, quantity=payload.quantity
    )


@router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_service.update_item(
        db, user=current_user, item_id=item_id, quantity=payload.quantity
    )


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_service.remove_item(db, user=current_user, item_id=item_id)


@router.delete("", response_model=CartResponse)
async def clear_cart(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_service.clear_cart(db, user=current_user)
