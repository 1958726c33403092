"""Pydantic schemas for the marketplace service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    model_validator,
)
from services.marketplace_service.models import (
    DiscountType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductCategory,
    PromotionType,
    ProviderType,
    UserRole,
)


class MessageResponse(BaseModel):
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


# ============================================================================
# USER / AUTH SCHEMAS
# ============================================================================


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: UserRole


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    provider_type: Optional[ProviderType] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    company_name: Optional[str] = None
    logo: Optional[str] = None
    is_verified: bool
    is_active: bool
    privacy_consent: bool
    created_at: datetime
    updated_at: datetime


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Optional[UserRole] = None
    provider_type: Optional[ProviderType] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    privacy_consent: bool = False


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class GoogleLoginRequest(BaseModel):
    id_token: str = Field(..., validation_alias=AliasChoices("id_token", "credential"))
    role: Optional[UserRole] = None


class FacebookLoginRequest(BaseModel):
    access_token: str
    role: Optional[UserRole] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserSummary


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    avatar: Optional[str] = Field(None, max_length=500)
    company_name: Optional[str] = Field(None, max_length=255)
    logo: Optional[str] = Field(None, max_length=500)
    provider_type: Optional[ProviderType] = None


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class RatingSummary(BaseModel):
    average: Decimal
    count: int


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    price: Decimal
    original_price: Optional[Decimal] = None
    images: list[str] = []
    category: ProductCategory
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    tags: list[str] = []
    specifications: dict = {}
    stock: int
    seller_id: uuid.UUID
    seller: Optional[UserBrief] = None

    rating_average: Decimal = Field(Decimal("0"), exclude=True)
    rating_count: int = Field(0, exclude=True)

    is_best_seller: bool = False
    on_sale: bool = False
    sale_price: Optional[Decimal] = None
    sale_start_date: Optional[datetime] = None
    sale_end_date: Optional[datetime] = None
    discount_percentage: Optional[Decimal] = None
    promotion_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def rating(self) -> RatingSummary:
        return RatingSummary(
            average=self.rating_average or Decimal("0"), count=self.rating_count or 0
        )


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0)
    images: Optional[list[str]] = Field(None, min_length=1)
    category: Optional[ProductCategory] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    tags: Optional[list[str]] = None
    specifications: Optional[dict] = None
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    pagination: Pagination


class BestSellerUpdate(BaseModel):
    is_best_seller: bool


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    images: list[str] = Field(default_factory=list, max_length=5)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    rating: int
    comment: Optional[str] = None
    images: list[str] = []
    is_verified: bool
    created_at: datetime
    user: Optional[UserBrief] = None


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class CartProduct(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    price: Decimal
    images: list[str] = []
    stock: int
    seller_id: uuid.UUID
    on_sale: bool = False
    original_price: Optional[Decimal] = None


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    product: CartProduct

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[CartItemResponse] = []
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @computed_field
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class ShippingAddress(BaseModel):
    """Shipping address; ``region`` and ``postal_code`` are accepted aliases."""

    model_config = ConfigDict(populate_by_name=True)

    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field("", max_length=100, validation_alias=AliasChoices("state", "region"))
    zip_code: str = Field(
        "", max_length=20, validation_alias=AliasChoices("zip_code", "postal_code")
    )
    country: str = Field("Ethiopia", max_length=100)
    phone: str = Field(..., min_length=1, max_length=50)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class OrderItemInput(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    """Create an order from the caller's cart or an explicit item list."""

    shipping_address: Optional[ShippingAddress] = None
    payment_method: Optional[PaymentMethod] = None
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    use_cart: bool = False
    items: Optional[list[OrderItemInput]] = None


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    quantity: int
    price: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    user_id: Optional[uuid.UUID] = None
    user: Optional[UserBrief] = None
    shipping_address: dict
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    total_amount: Decimal
    shipping_cost: Decimal
    tracking_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    items: list[OrderItemResponse] = []


class OrderCreatedResponse(BaseModel):
    message: str
    order: OrderResponse


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: Pagination


class OrderStatusUpdate(BaseModel):
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=100)


class DeliveryLocation(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: Optional[str] = None
    location: Optional[str] = None


class DeliveryQuoteRequest(BaseModel):
    origin: Optional[DeliveryLocation] = None
    destination: Optional[DeliveryLocation] = None


class DeliveryQuoteResponse(BaseModel):
    distance_km: Optional[float] = None
    delivery_fee: int


# ============================================================================
# PROMOTION SCHEMAS
# ============================================================================


class PromotionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: PromotionType = PromotionType.SALE
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: datetime
    end_date: datetime
    categories: list[ProductCategory] = []
    products: list[uuid.UUID] = []
    is_active: bool = True
    image: Optional[str] = Field(None, max_length=500)
    banner_text: Optional[str] = Field(None, max_length=255)
    min_purchase_amount: Decimal = Field(Decimal("0"), ge=0)
    max_usage_per_user: Optional[int] = Field(None, ge=1)
    total_usage_limit: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_percentage(self):
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value > 100
        ):
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class PromotionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[PromotionType] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    categories: Optional[list[ProductCategory]] = None
    is_active: Optional[bool] = None
    image: Optional[str] = Field(None, max_length=500)
    banner_text: Optional[str] = Field(None, max_length=255)
    min_purchase_amount: Optional[Decimal] = Field(None, ge=0)
    max_usage_per_user: Optional[int] = Field(None, ge=1)
    total_usage_limit: Optional[int] = Field(None, ge=1)


class PromotionProduct(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    price: Decimal
    original_price: Optional[Decimal] = None
    on_sale: bool
    discount_percentage: Optional[Decimal] = None
    images: list[str] = []


class PromotionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    type: PromotionType
    discount_type: DiscountType
    discount_value: Decimal
    max_discount: Optional[Decimal] = None
    start_date: datetime
    end_date: datetime
    categories: list[ProductCategory] = []
    is_active: bool
    created_by: Optional[uuid.UUID] = None
    image: Optional[str] = None
    banner_text: Optional[str] = None
    min_purchase_amount: Decimal
    max_usage_per_user: Optional[int] = None
    total_usage_limit: Optional[int] = None
    current_usage: int
    created_at: datetime
    updated_at: datetime

    products: list[PromotionProduct] = []


class PromotionListResponse(BaseModel):
    promotions: list[PromotionResponse]
    pagination: Pagination


class ApplyPromotionRequest(BaseModel):
    promotion_id: uuid.UUID
    product_ids: list[uuid.UUID] = Field(..., min_length=1)


class RemovePromotionRequest(BaseModel):
    product_ids: list[uuid.UUID] = Field(..., min_length=1)


class PromotionProductsResponse(BaseModel):
    message: str
    products: list[PromotionProduct]


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================


class TopSellerResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    company_name: Optional[str] = None
    logo: Optional[str] = None
    avatar: Optional[str] = None
    city: Optional[str] = None
    is_verified: bool
    product_count: int
    average_rating: float
    order_count: int


class AdminStats(BaseModel):
    total_users: int
    total_providers: int
    verified_providers: int
    pending_verification: int
    total_products: int
    active_products: int
    total_orders: int
    pending_orders: int


class OrderStats(BaseModel):
    total_orders: int
    pending_orders: int
    processing_orders: int
    shipped_orders: int
    delivered_orders: int
    cancelled_orders: int
    total_revenue: Decimal
    pending_payment: Decimal


class AdminStatsResponse(BaseModel):
    stats: AdminStats


class OrderStatsResponse(BaseModel):
    stats: OrderStats


class AdminUserUpdate(BaseModel):
    is_verified: Optional[bool] = None
    is_active: Optional[bool] = None
    role: Optional[UserRole] = None


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class UserActionResponse(BaseModel):
    message: str
    user: UserResponse


class ProductActionResponse(BaseModel):
    message: str
    product: ProductResponse


class PromotionActionResponse(BaseModel):
    message: str
    promotion: PromotionResponse


# ============================================================================
# SUBSCRIPTION SCHEMAS
# ============================================================================


class SubscriptionRequest(BaseModel):
    email: EmailStr


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    is_active: bool
    subscribed_at: datetime


class SubscriptionResult(BaseModel):
    message: str
    subscription: SubscriptionResponse
