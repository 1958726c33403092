"""Marketplace service routers package."""

from services.marketplace_service.routers.admin import router as admin_router
from services.marketplace_service.routers.auth import router as auth_router
from services.marketplace_service.routers.cart import router as cart_router
from services.marketplace_service.routers.orders import router as orders_router
from services.marketplace_service.routers.products import router as products_router
from services.marketplace_service.routers.promotions import (
    router as promotions_router,
)
from services.marketplace_service.routers.reviews import router as reviews_router
from services.marketplace_service.routers.subscriptions import (
    router as subscriptions_router,
)

__all__ = [
    "admin_router",
    "auth_router",
    "cart_router",
    "orders_router",
    "products_router",
    "promotions_router",
    "reviews_router",
    "subscriptions_router",
]
