"""Promotion router: public campaign listing and promotion management."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.roles import Capability
from libs.db.session import get_async_db
from services.marketplace_service.dependencies import CurrentUser, require_capability
from services.marketplace_service.models import PromotionType, User
from services.marketplace_service.schemas import (
    ApplyPromotionRequest,
    MessageResponse,
    PromotionActionResponse,
    PromotionCreate,
    PromotionListResponse,
    PromotionProductsResponse,
    PromotionResponse,
    PromotionUpdate,
    RemovePromotionRequest,
)
from services.marketplace_service.services import promotion_service
from services.marketplace_service.services.catalog_service import pagination
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["promotions"])

manage_promotions = require_capability(Capability.MANAGE_PROMOTIONS)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("", response_model=PromotionListResponse)
async def list_promotions(
    active: bool = False,
    type: Optional[PromotionType] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """List promotions; ``active=true`` keeps the ones running right now."""
    promotions, total = await promotion_service.list_promotions(
        db, active=active, promotion_type=type, page=page, limit=limit
    )
    return {"promotions": promotions, "pagination": pagination(page, limit, total)}


@router.get("/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(
    promotion_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_service.get_promotion(db, promotion_id)


# ============================================================================
# MANAGEMENT
# ============================================================================


@router.post(
    "", response_model=PromotionActionResponse, status_code=status.HTTP_201_CREATED
)
async def create_promotion(
    payload: PromotionCreate,
    current_user: User = Depends(manage_promotions),
    db: AsyncSession = Depends(get_async_db),
):
    promotion = await promotion_service.create_promotion(
        db, user=current_user, payload=payload
    )
    return {"message": "Promotion created successfully", "promotion": promotion}


@router.post("/apply-to-products", response_model=PromotionProductsResponse)
async def apply_to_products(
    payload: ApplyPromotionRequest,
    current_user: User = Depends(manage_promotions),
    db: AsyncSession = Depends(get_async_db),
):
    products = await promotion_service.apply_to_products(
        db, promotion_id=payload.promotion_id, product_ids=payload.product_ids
    )
    return {"message": "Promotion applied to products", "products": products}


@router.post("/remove-from-products", response_model=PromotionProductsResponse)
async def remove_from_products(
    payload: RemovePromotionRequest,
    current_user: User = Depends(manage_promotions),
    db: AsyncSession = Depends(get_async_db),
):
    products = await promotion_service.remove_from_products(
        db, product_ids=payload.product_ids
    )
    return {"message": "Promotion removed from products", "products": products}


@router.put("/{promotion_id}", response_model=PromotionActionResponse)
async def update_promotion(
    promotion_id: uuid.UUID,
    payload: PromotionUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_async_db),
):
    """Creator, or any role that manages promotions, may edit a campaign."""
    promotion = await promotion_service.update_promotion(
        db, promotion_id=promotion_id, user=current_user, payload=payload
    )
    return {"message": "Promotion updated successfully", "promotion": promotion}


@router.put("/{promotion_id}/toggle-status", response_model=PromotionActionResponse)
async def toggle_promotion_status(
    promotion_id: uuid.UUID,
    current_user: User = Depends(manage_promotions),
    db: AsyncSession = Depends(get_async_db),
):
    promotion = await promotion_service.toggle_promotion_status(
        db, promotion_id=promotion_id
    )
    state = "activated" if promotion.is_active else "deactivated"
    return {"message": f"Promotion {state} successfully", "promotion": promotion}


@router.delete("/{promotion_id}", response_model=MessageResponse)
async def delete_promotion(
    promotion_id: uuid.UUID,
    current_user: User = Depends(manage_promotions),
    db: AsyncSession = Depends(get_async_db),
):
    await promotion_service.delete_promotion(db, promotion_id=promotion_id)
    return {"message": "Promotion deleted successfully"}
