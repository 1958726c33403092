"""Unit tests for discount computation and promotion lifecycle."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException
from services.marketplace_service.models import DiscountType, Product
from services.marketplace_service.schemas import PromotionCreate, PromotionUpdate
from services.marketplace_service.services import promotion_service
from services.marketplace_service.services.promotion_service import (
    apply_promotion_to_products,
    clear_promotion_fields,
    compute_sale_price,
)
from tests.factories import (
    AdminFactory,
    ProductFactory,
    PromotionFactory,
    SellerFactory,
    persist,
)


def _window():
    now = datetime.now(timezone.utc)
    return {"start_date": now - timedelta(days=1), "end_date": now + timedelta(days=7)}


# ---------------------------------------------------------------------------
# compute_sale_price
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_percentage_discount():
    sale, pct = compute_sale_price(Decimal("1000"), DiscountType.PERCENTAGE, Decimal("20"))
    assert sale == Decimal("800.00")
    assert pct == Decimal("20.00")


@pytest.mark.unit
def test_percentage_discount_is_capped_by_max_discount():
    sale, pct = compute_sale_price(
        Decimal("1000"), DiscountType.PERCENTAGE, Decimal("50"), Decimal("100")
    )
    assert sale == Decimal("900.00")
    assert pct == Decimal("10.00")


@pytest.mark.unit
def test_fixed_amount_discount():
    sale, pct = compute_sale_price(Decimal("1000"), DiscountType.FIXED_AMOUNT, Decimal("150"))
    assert sale == Decimal("850.00")
    assert pct == Decimal("15.00")


@pytest.mark.unit
def test_fixed_amount_never_goes_below_zero():
    sale, pct = compute_sale_price(Decimal("100"), DiscountType.FIXED_AMOUNT, Decimal("150"))
    assert sale == Decimal("0.00")
    assert pct == Decimal("100.00")


# ---------------------------------------------------------------------------
# applying and clearing
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_apply_promotion_sets_sale_fields():
    product = ProductFactory.create(price=Decimal("1000"))
    promotion = PromotionFactory.create(discount_value=Decimal("20"))

    apply_promotion_to_products(promotion, [product])

    assert product.price == Decimal("800.00")
    assert product.sale_price == Decimal("800.00")
    assert product.original_price == Decimal("1000")
    assert product.on_sale is True
    assert product.promotion_id == promotion.id
    assert product.discount_percentage == Decimal("20.00")
    assert product.sale_end_date == promotion.end_date


@pytest.mark.unit
def test_reapplying_prices_from_original_price():
    product = ProductFactory.create(price=Decimal("1000"))
    first = PromotionFactory.create(discount_value=Decimal("20"))
    second = PromotionFactory.create(discount_value=Decimal("10"))

    apply_promotion_to_products(first, [product])
    apply_promotion_to_products(second, [product])

    assert product.price == Decimal("900.00")
    assert product.original_price == Decimal("1000")
    assert product.promotion_id == second.id


@pytest.mark.unit
def test_clearing_restores_original_price():
    product = ProductFactory.create(price=Decimal("1000"))
    apply_promotion_to_products(PromotionFactory.create(), [product])

    clear_promotion_fields(product)

    assert product.price == Decimal("1000")
    assert product.original_price is None
    assert product.on_sale is False
    assert product.promotion_id is None
    assert product.sale_price is None
    assert product.discount_percentage is None


# ---------------------------------------------------------------------------
# lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_promotion_prices_listed_products(db_session):
    admin = AdminFactory.create()
    seller = SellerFactory.create()
    product = ProductFactory.create(seller_id=seller.id, price=Decimal("1000"))
    await persist(db_session, admin, seller, product)

    promotion = await promotion_service.create_promotion(
        db_session,
        user=admin,
        payload=PromotionCreate(
            name="Holiday", discount_value=Decimal("20"), products=[product.id], **_window()
        ),
    )

    assert [p.id for p in promotion.products] == [product.id]
    assert promotion.created_by == admin.id
    await db_session.refresh(product)
    assert product.price == Decimal("800.00")
    assert product.on_sale is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_promotion_rejects_inverted_window(db_session):
    admin = await persist(db_session, AdminFactory.create())
    window = _window()

    with pytest.raises(HTTPException) as exc_info:
        await promotion_service.create_promotion(
            db_session,
            user=admin,
            payload=PromotionCreate(
                name="Backwards",
                discount_value=Decimal("5"),
                start_date=window["end_date"],
                end_date=window["start_date"],
            ),
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "End date must be after start date"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_updating_discount_reprices_products(db_session):
    admin = AdminFactory.create()
    product = ProductFactory.create(price=Decimal("1000"))
    await persist(db_session, admin, product)
    promotion = await promotion_service.create_promotion(
        db_session,
        user=admin,
        payload=PromotionCreate(
            name="Sale", discount_value=Decimal("20"), products=[product.id], **_window()
        ),
    )

    await promotion_service.update_promotion(
        db_session,
        promotion_id=promotion.id,
        user=admin,
        payload=PromotionUpdate(discount_value=Decimal("50")),
    )

    refreshed = await db_session.get(Product, product.id, populate_existing=True)
    assert refreshed.price == Decimal("500.00")
    assert refreshed.original_price == Decimal("1000")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_promotion_restores_products(db_session):
    admin = AdminFactory.create()
    product = ProductFactory.create(price=Decimal("1000"))
    await persist(db_session, admin, product)
    promotion = await promotion_service.create_promotion(
        db_session,
        user=admin,
        payload=PromotionCreate(
            name="Sale", discount_value=Decimal("20"), products=[product.id], **_window()
        ),
    )

    await promotion_service.delete_promotion(db_session, promotion_id=promotion.id)

    refreshed = await db_session.get(Product, product.id, populate_existing=True)
    assert refreshed.price == Decimal("1000")
    assert refreshed.on_sale is False
    assert refreshed.promotion_id is None

    with pytest.raises(HTTPException) as exc_info:
        await promotion_service.get_promotion(db_session, promotion.id)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.unit
async def test_toggle_mirrors_active_flag_onto_products(db_session):
    admin = AdminFactory.create()
    product = ProductFactory.create(price=Decimal("1000"))
    await persist(db_session, admin, product)
    promotion = await promotion_service.create_promotion(
        db_session,
        user=admin,
        payload=PromotionCreate(
            name="Sale", discount_value=Decimal("20"), products=[product.id], **_window()
        ),
    )

    toggled = await promotion_service.toggle_promotion_status(
        db_session, promotion_id=promotion.id
    )

    assert toggled.is_active is False
    refreshed = await db_session.get(Product, product.id, populate_existing=True)
    assert refreshed.on_sale is False
    assert refreshed.price == Decimal("800.00")
