"""Order router: checkout, buyer and seller order views, fulfilment."""

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, status
from libs.auth.roles import Capability
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import CurrentUser, require_capability
from services.marketplace_service.models import User
from services.marketplace_service.schemas import (
    DeliveryQuoteRequest,
    DeliveryQuoteResponse,
    OrderCreate,
    OrderCreatedResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from services.marketplace_service.services import order_service
from services.marketplace_service.services.delivery_fee import quote_delivery_fee
from services.marketplace_service.services.notifications import (
    send_order_notifications,
    send_status_notification,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["orders"])


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post(
    "", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED
)
async def create_order(
    payload: OrderCreate,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Place an order from the cart (``use_cart``) or an explicit item list.

    Stock is validated and decremented atomically; buyer and seller emails
    are sent after the response.
    """
    order, notification = await order_service.create_order(
        db, user=current_user, payload=payload
    )
    background_tasks.add_task(send_order_notifications, notification)
    return {"message": "Order created successfully", "order": order}


@router.post("/delivery-quote", response_model=DeliveryQuoteResponse)
async def delivery_quote(payload: DeliveryQuoteRequest):
    """Distance-banded delivery fee between two locations."""
    return await quote_delivery_fee(payload.origin, payload.destination)


# ============================================================================
# ORDER VIEWS
# ============================================================================


@router.get("/my-orders", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await order_service.list_user_orders(db, user=current_user)


@router.get("/seller-orders", response_model=list[OrderResponse])
async def list_seller_orders(
    seller: User = Depends(require_capability(Capability.SELL)),
    db: AsyncSession = Depends(get_async_db),
):
    """Orders containing at least one of the caller's products."""
    return await order_service.list_seller_orders(db, seller=seller)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await order_service.get_order_for_user(
        db, order_id=order_id, user=current_user
    )


# ============================================================================
# FULFILMENT
# ============================================================================


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_db),
):
    order, email = await order_service.update_order_status(
        db, order_id=order_id, user=current_user, payload=payload
    )
    if email:
        background_tasks.add_task(send_status_notification, email)
    return order
