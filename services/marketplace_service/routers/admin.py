"""Admin router: dashboard statistics and user, product and order management.

Everything except the public top-sellers ranking requires an administrator.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.roles import Capability
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import require_capability
from services.marketplace_service.models import (
    OrderStatus,
    PaymentStatus,
    ProductCategory,
    User,
    UserRole,
)
from services.marketplace_service.schemas import (
    AdminStatsResponse,
    AdminUserUpdate,
    BestSellerUpdate,
    MessageResponse,
    OrderListResponse,
    OrderStatsResponse,
    ProductActionResponse,
    ProductListResponse,
    TopSellerResponse,
    UserActionResponse,
    UserListResponse,
    UserResponse,
)
from services.marketplace_service.services import admin_service, catalog_service
from services.marketplace_service.services.seller_stats import get_top_sellers
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin"])

require_admin = require_capability(Capability.ADMINISTER)


@router.get("/top-sellers", response_model=list[TopSellerResponse])
async def top_sellers(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_top_sellers(db, limit=limit)


# ============================================================================
# STATISTICS
# ============================================================================


@router.get("/stats", response_model=AdminStatsResponse)
async def dashboard_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return {"stats": await admin_service.get_dashboard_stats(db)}


@router.get("/orders/stats", response_model=OrderStatsResponse)
async def order_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return {"stats": await admin_service.get_order_stats(db)}


# ============================================================================
# USERS
# ============================================================================


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    users, total = await admin_service.list_users(
        db, role=role, search=search, page=page, limit=limit
    )
    return {"users": users, "pagination": catalog_service.pagination(page, limit, total)}


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await admin_service.get_user(db, user_id)


@router.put("/users/{user_id}", response_model=UserActionResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    user = await admin_service.update_user(db, user_id=user_id, payload=payload)
    return {"message": "User updated successfully", "user": user}


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await admin_service.delete_user(db, user_id=user_id)
    return {"message": "User deleted successfully"}


@router.put("/providers/{user_id}/verify", response_model=UserActionResponse)
async def verify_provider(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    user = await admin_service.verify_provider(db, user_id=user_id)
    return {"message": "Provider verified successfully", "user": user}


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category: Optional[ProductCategory] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """All products, active or not unless ``is_active`` is given."""
    products, total = await catalog_service.list_products(
        db,
        category=category,
        search=search,
        page=page,
        limit=limit,
        is_active=is_active,
    )
    return {
        "products": products,
        "pagination": catalog_service.pagination(page, limit, total),
    }


@router.delete("/products/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await admin_service.admin_delete_product(db, product_id=product_id)
    return {"message": "Product deleted successfully"}


@router.put("/products/{product_id}/toggle", response_model=ProductActionResponse)
async def toggle_product(
    product_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await admin_service.toggle_product_status(db, product_id=product_id)
    state = "activated" if product.is_active else "deactivated"
    return {"message": f"Product {state} successfully", "product": product}


@router.put("/products/{product_id}/best-seller", response_model=ProductActionResponse)
async def set_best_seller(
    product_id: uuid.UUID,
    payload: BestSellerUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await catalog_service.set_best_seller(
        db, product_id=product_id, is_best_seller=payload.is_best_seller
    )
    return {"message": "Best seller flag updated", "product": product}


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    order_status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    orders, total = await admin_service.list_orders(
        db,
        order_status=order_status,
        payment_status=payment_status,
        search=search,
        page=page,
        limit=limit,
    )
    return {"orders": orders, "pagination": catalog_service.pagination(page, limit, total)}
