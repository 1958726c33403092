"""Enum definitions for marketplace models."""

import enum

from libs.auth.roles import UserRole


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class ProviderType(str, enum.Enum):
    FREELANCER = "freelancer"
    SMALL_BUSINESS = "small business"
    SPECIALIZED = "specialized"


class ProductCategory(str, enum.Enum):
    FASHION_APPAREL = "Fashion & Apparel"
    ELECTRONICS = "Electronics"
    HOME_LIVING = "Home & Living"
    BEAUTY_PERSONAL_CARE = "Beauty & Personal Care"
    SPORTS_OUTDOORS = "Sports & Outdoors"
    BOOKS = "Books"
    TOYS_GAMES = "Toys & Games"
    FOOD_BEVERAGES = "Food & Beverages"
    OTHER = "Other"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CBE_BANK_TRANSFER = "cbe_bank_transfer"
    TELEBIRR = "telebirr"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"


class PromotionType(str, enum.Enum):
    SALE = "sale"
    DISCOUNT = "discount"
    BUNDLE = "bundle"
    FLASH_SALE = "flash_sale"
    SEASONAL = "seasonal"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


__all__ = [
    "DiscountType",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "ProductCategory",
    "PromotionType",
    "ProviderType",
    "UserRole",
    "enum_values",
]
