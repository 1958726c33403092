"""Promotion campaigns and the products they cover."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.marketplace_service.models.enums import (
    DiscountType,
    PromotionType,
    enum_values,
)
from sqlalchemy import JSON, Boolean, Column, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

promotion_products = Table(
    "promotion_products",
    Base.metadata,
    Column(
        "promotion_id",
        Uuid,
        ForeignKey("promotions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "product_id",
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Promotion(Base):
    """Time-boxed discount campaign."""

    __tablename__ = "promotions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[PromotionType] = mapped_column(
        SAEnum(PromotionType, values_callable=enum_values, name="promotion_type_enum"),
        default=PromotionType.SALE,
        nullable=False,
    )

    discount_type: Mapped[DiscountType] = mapped_column(
        SAEnum(DiscountType, values_callable=enum_values, name="discount_type_enum"),
        default=DiscountType.PERCENTAGE,
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    max_discount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    categories: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Display
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    banner_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Limits and usage
    min_purchase_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    max_usage_per_user: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    current_usage: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    products = relationship("Product", secondary=promotion_products)
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Promotion {self.name} {self.discount_type}={self.discount_value}>"
