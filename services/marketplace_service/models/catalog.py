"""Catalog models: products and product reviews."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.marketplace_service.models.enums import ProductCategory, enum_values
from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# PRODUCT MODELS
# ============================================================================


class Product(Base):
    """
    A sellable item listed by a seller.

    ``price`` is the effective price. Applying a promotion rewrites it and
    keeps the pre-promotion price in ``original_price``.
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )

    images: Mapped[list] = mapped_column(JSON, default=list)  # ordered URLs
    category: Mapped[ProductCategory] = mapped_column(
        SAEnum(
            ProductCategory,
            values_callable=enum_values,
            name="product_category_enum",
        ),
        nullable=False,
        index=True,
    )
    subcategory: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    specifications: Mapped[dict] = mapped_column(JSON, default=dict)

    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Rating aggregate, recomputed from reviews
    rating_average: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=0)
    rating_count: Mapped[int] = mapped_column(Integer, default=0)

    is_best_seller: Mapped[bool] = mapped_column(Boolean, default=False)

    # Promotion-derived fields
    on_sale: Mapped[bool] = mapped_column(Boolean, default=False)
    sale_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    sale_start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    sale_end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    discount_percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2), nullable=True
    )
    promotion_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("promotions.id", ondelete="SET NULL"), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="non_negative_stock"),
        Index("ix_products_active_created", "is_active", "created_at"),
    )

    # Relationships
    seller = relationship("User", back_populates="products")
    promotion = relationship("Promotion", foreign_keys=[promotion_id])

    def __repr__(self):
        return f"<Product {self.name} price={self.price} stock={self.stock}>"


# ============================================================================
# REVIEW MODELS
# ============================================================================


class Review(Base):
    """One review per user per product."""

    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    images: Mapped[list] = mapped_column(JSON, default=list)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="unique_user_product_review"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
    )

    # Relationships
    user = relationship("User")

    def __repr__(self):
        return f"<Review product={self.product_id} rating={self.rating}>"
