"""Order workflow: checkout, order numbers, status transitions and access."""

import random
import re
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.roles import Capability, has_capability
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    Cart,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    User,
)
from services.marketplace_service.schemas import OrderCreate, OrderStatusUpdate
from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 10
CENTS = Decimal("0.01")

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

NOTIFY_BUYER_STATUSES = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})


# ---------------------------------------------------------------------------
# Order numbers
# ---------------------------------------------------------------------------


def order_number_prefix(category: Optional[str]) -> str:
    """First three letters of the category, upper-cased and padded with X."""
    letters = re.sub(r"[^A-Za-z]", "", category or "").upper()
    if not letters:
        return "ORD"
    return letters[:3].ljust(3, "X")


async def generate_order_number(db: AsyncSession, prefix: str) -> str:
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        candidate = f"{prefix}{random.randint(0, 999999):06d}"
        taken = await db.scalar(select(exists().where(Order.order_number == candidate)))
        if not taken:
            return candidate

    logger.error(
        "Order number space exhausted for prefix %s after %s attempts",
        prefix,
        ORDER_NUMBER_ATTEMPTS,
    )
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Could not generate a unique order number, please retry",
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _order_query():
    return select(Order).options(
        selectinload(Order.items), selectinload(Order.user)
    )


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    query = (
        _order_query()
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = (await db.execute(query)).scalar_one_or_none()
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return order


async def seller_has_item_in_order(
    db: AsyncSession, order_id: uuid.UUID, seller_id: uuid.UUID
) -> bool:
    """True when at least one order line is for a product the seller owns."""
    query = select(
        exists()
        .where(OrderItem.order_id == order_id)
        .where(OrderItem.product_id == Product.id)
        .where(Product.seller_id == seller_id)
    )
    return bool(await db.scalar(query))


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


async def _requested_lines(
    db: AsyncSession, user: User, payload: OrderCreate
) -> tuple[dict[uuid.UUID, int], Optional[Cart]]:
    """Collect ``{product_id: quantity}`` (duplicates summed, input order kept)."""
    cart = None
    if payload.use_cart:
        query = (
            select(Cart)
            .where(Cart.user_id == user.id)
            .options(selectinload(Cart.items))
            .execution_options(populate_existing=True)
        )
        cart = (await db.execute(query)).scalar_one_or_none()
        if cart is None or not cart.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )
        source = [(item.product_id, item.quantity) for item in cart.items]
    else:
        if not payload.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Items are required",
            )
        source = [(item.product_id, item.quantity) for item in payload.items]

    lines: dict[uuid.UUID, int] = {}
    for product_id, quantity in source:
        lines[product_id] = lines.get(product_id, 0) + quantity
    return lines, cart


async def create_order(
    db: AsyncSession, *, user: User, payload: OrderCreate
) -> tuple[Order, dict]:
    """Validate stock, decrement it, and persist the order in one transaction.

    Returns the order and the notification payload for the buyer and each
    distinct seller; sending is left to the caller.
    """
    if payload.shipping_address is None or payload.payment_method is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Shipping address and payment method are required",
        )

    lines, cart = await _requested_lines(db, user, payload)

    # Row locks keep concurrent checkouts from overselling
    result = await db.execute(
        select(Product)
        .where(Product.id.in_(list(lines)))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    products = {product.id: product for product in result.scalars().all()}

    for product_id, quantity in lines.items():
        product = products.get(product_id)
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {product_id} is no longer available",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {product.name} is no longer available",
            )
        if product.stock < quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient stock for {product.name}",
            )

    first_product = products[next(iter(lines))]
    order_number = await generate_order_number(
        db, order_number_prefix(first_product.category.value)
    )

    shipping_cost = payload.shipping_cost.quantize(CENTS)
    order_items = []
    subtotal = Decimal("0")
    for product_id, quantity in lines.items():
        product = products[product_id]
        product.stock -= quantity
        subtotal += product.price * quantity
        order_items.append(
            OrderItem(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                price=product.price,
            )
        )

    order = Order(
        order_number=order_number,
        user_id=user.id,
        shipping_address=payload.shipping_address.model_dump(),
        payment_method=payload.payment_method,
        payment_status=PaymentStatus.PENDING,
        order_status=OrderStatus.PENDING,
        total_amount=(subtotal + shipping_cost).quantize(CENTS),
        shipping_cost=shipping_cost,
        items=order_items,
    )
    db.add(order)

    if cart is not None:
        cart.items.clear()

    await db.commit()

    logger.info(
        "Order %s created by user %s (%s line(s), total=%s)",
        order.order_number,
        user.id,
        len(order_items),
        order.total_amount,
    )

    order = await get_order(db, order.id)
    notification = await build_order_notification(db, order, user, products)
    return order, notification


async def build_order_notification(
    db: AsyncSession, order: Order, buyer: User, products: dict[uuid.UUID, Product]
) -> dict:
    """Plain-data email payload: one buyer entry, one entry per distinct seller."""
    seller_ids = {products[item.product_id].seller_id for item in order.items}
    sellers = (
        (await db.execute(select(User).where(User.id.in_(seller_ids)))).scalars().all()
    )

    def _line(item: OrderItem) -> dict:
        return {"name": item.product_name, "quantity": item.quantity, "price": item.price}

    seller_payloads = []
    for seller in sorted(sellers, key=lambda s: str(s.id)):
        seller_payloads.append(
            {
                "email": seller.email,
                "name": seller.company_name or seller.name,
                "items": [
                    _line(item)
                    for item in order.items
                    if products[item.product_id].seller_id == seller.id
                ],
            }
        )

    return {
        "order_number": order.order_number,
        "buyer": {"email": buyer.email, "name": buyer.name},
        "items": [_line(item) for item in order.items],
        "total_amount": order.total_amount,
        "shipping_cost": order.shipping_cost,
        "shipping_address": dict(order.shipping_address),
        "payment_method": order.payment_method.value,
        "sellers": seller_payloads,
    }


# ---------------------------------------------------------------------------
# Status updates
# ---------------------------------------------------------------------------


async def update_order_status(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    user: User,
    payload: OrderStatusUpdate,
) -> tuple[Order, Optional[dict]]:
    """Apply a status/payment/tracking update.

    Returns the order and, for shipped/delivered transitions, the buyer
    email payload.
    """
    order = await get_order(db, order_id)
    elevated = has_capability(user.role, Capability.MANAGE_ORDERS)

    if not elevated and not await seller_has_item_in_order(db, order.id, user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to update this order",
        )

    if payload.payment_status is not None and not elevated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can change the payment status",
        )

    current = order.order_status
    new_status = payload.order_status
    status_changed = new_status is not None and new_status != current
    if status_changed and not elevated and new_status not in ALLOWED_TRANSITIONS[current]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change order status from {current.value} to {new_status.value}",
        )

    if status_changed:
        order.order_status = new_status
    if payload.payment_status is not None:
        order.payment_status = payload.payment_status
    if payload.tracking_number:
        order.tracking_number = payload.tracking_number

    await db.commit()
    order = await get_order(db, order.id)

    if status_changed:
        logger.info(
            "Order %s moved %s -> %s by user %s",
            order.order_number,
            current.value,
            new_status.value,
            user.id,
        )

    email = None
    if status_changed and new_status in NOTIFY_BUYER_STATUSES and order.user:
        email = {
            "email": order.user.email,
            "name": order.user.name,
            "order_number": order.order_number,
            "order_status": new_status.value,
            "tracking_number": order.tracking_number,
        }
    return order, email


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_order_for_user(
    db: AsyncSession, *, order_id: uuid.UUID, user: User
) -> Order:
    """Owner, elevated role, or a seller with an item in the order."""
    order = await get_order(db, order_id)
    if (
        order.user_id == user.id
        or has_capability(user.role, Capability.MANAGE_ORDERS)
        or await seller_has_item_in_order(db, order.id, user.id)
    ):
        return order
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized",
    )


async def list_user_orders(db: AsyncSession, *, user: User) -> list[Order]:
    query = (
        _order_query()
        .where(Order.user_id == user.id)
        .order_by(Order.created_at.desc())
    )
    return list((await db.execute(query)).scalars().all())


async def list_seller_orders(db: AsyncSession, *, seller: User) -> list[Order]:
    """Orders containing at least one of the seller's products, newest first."""
    has_seller_item = (
        exists()
        .where(OrderItem.order_id == Order.id)
        .where(OrderItem.product_id == Product.id)
        .where(Product.seller_id == seller.id)
    )
    query = _order_query().where(has_seller_item).order_by(Order.created_at.desc())
    return list((await db.execute(query)).scalars().all())
