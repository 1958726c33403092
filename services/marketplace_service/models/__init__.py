"""Marketplace Service models package."""

from services.marketplace_service.models.catalog import Product, Review
from services.marketplace_service.models.commerce import (
    Cart,
    CartItem,
    Order,
    OrderItem,
)
from services.marketplace_service.models.enums import (
    DiscountType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductCategory,
    PromotionType,
    ProviderType,
    UserRole,
)
from services.marketplace_service.models.promotions import (
    Promotion,
    promotion_products,
)
from services.marketplace_service.models.subscriptions import Subscription
from services.marketplace_service.models.users import User

__all__ = [
    "Cart",
    "CartItem",
    "DiscountType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "ProductCategory",
    "Promotion",
    "PromotionType",
    "ProviderType",
    "Review",
    "Subscription",
    "User",
    "UserRole",
    "promotion_products",
]
