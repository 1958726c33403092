"""Product catalog router: listing, best sellers, seller product management."""

import json
import uuid
from decimal import Decimal
from typing import Literal, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from libs.auth.roles import Capability
from libs.common.media_utils import upload_images
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import CurrentUser, require_capability
from services.marketplace_service.models import ProductCategory, User
from services.marketplace_service.schemas import (
    MessageResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from services.marketplace_service.services import catalog_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["products"])


def _parse_tags(raw: Optional[str]) -> list[str]:
    """Tags arrive as a JSON array or a comma-separated string."""
    if not raw or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = raw.split(",")
    if isinstance(parsed, str):
        parsed = [parsed]
    if not isinstance(parsed, list):
        raise HTTPException(status_code=400, detail="Tags must be a list")
    return [str(tag).strip() for tag in parsed if str(tag).strip()]


def _parse_specifications(raw: Optional[str]) -> dict:
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=400, detail="Specifications must be a JSON object"
        )
    if not isinstance(parsed, dict):
        raise HTTPException(
            status_code=400, detail="Specifications must be a JSON object"
        )
    return parsed


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[ProductCategory] = None,
    seller: Optional[uuid.UUID] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = None,
    sort_by: Literal["created_at", "price", "name", "stock", "rating"] = "created_at",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """List active products with filters, search, sorting and pagination."""
    products, total = await catalog_service.list_products(
        db,
        category=category,
        seller_id=seller,
        min_price=min_price,
        max_price=max_price,
        search=search,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    return {
        "products": products,
        "pagination": catalog_service.pagination(page, limit, total),
    }


@router.get("/best-sellers", response_model=list[ProductResponse])
async def list_best_sellers(
    limit: int = Query(8, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
):
    return await catalog_service.list_best_sellers(db, limit=limit)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await catalog_service.get_product(db, product_id, active_only=True)


# ============================================================================
# SELLER PRODUCT MANAGEMENT
# ============================================================================


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(...),
    description: str = Form(...),
    price: Decimal = Form(..., ge=0),
    category: ProductCategory = Form(...),
    stock: int = Form(..., ge=0),
    original_price: Optional[Decimal] = Form(None, ge=0),
    subcategory: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    specifications: Optional[str] = Form(None),
    images: list[UploadFile] = File(...),
    seller: User = Depends(require_capability(Capability.SELL)),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create a product from a multipart form.

    Images are uploaded to the media host first; the product is only stored
    once every upload has succeeded.
    """
    parsed_tags = _parse_tags(tags)
    parsed_specs = _parse_specifications(specifications)
    urls = await upload_images(images)

    return await catalog_service.create_product(
        db,
        seller=seller,
        name=name,
        description=description,
        price=price,
        category=category,
        stock=stock,
        images=urls,
        original_price=original_price,
        subcategory=subcategory,
        brand=brand,
        tags=parsed_tags,
        specifications=parsed_specs,
    )


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    return await catalog_service.update_product(
        db, product_id=product_id, user=current_user, payload=payload
    )


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    await catalog_service.delete_product(db, product_id=product_id, user=current_user)
    return {"message": "Product removed"}


@router.post("/{product_id}/images", response_model=ProductResponse)
async def add_product_images(
    product_id: uuid.UUID,
    current_user: CurrentUser,
    images: list[UploadFile] = File(...),
    db: AsyncSession = Depends(get_async_db),
):
    """Append uploaded images to an existing product."""
    # Ownership is checked before anything is uploaded
    product = await catalog_service.get_product(db, product_id)
    if not catalog_service.can_manage_product(current_user, product):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this product",
        )
    urls = await upload_images(images)
    return await catalog_service.add_product_images(
        db, product_id=product_id, user=current_user, urls=urls
    )
