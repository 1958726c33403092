"""Unit tests for the top-seller ranking."""

from decimal import Decimal

import pytest
from services.marketplace_service.models import OrderStatus, UserRole
from services.marketplace_service.services.seller_stats import (
    get_top_sellers,
    seller_score,
)
from tests.factories import (
    OrderFactory,
    ProductFactory,
    SellerFactory,
    UserFactory,
    persist,
)


@pytest.mark.unit
def test_seller_score_weights():
    assert seller_score(order_count=2, average_rating=4.5, product_count=3) == 32


@pytest.mark.asyncio
@pytest.mark.unit
async def test_sellers_ranked_by_score_and_empty_shops_excluded(db_session):
    buyer = UserFactory.create()
    busy = SellerFactory.create(name="Busy Shop")
    stocked = SellerFactory.create(name="Stocked Shop", role=UserRole.PRODUCT_PROVIDER)
    empty = SellerFactory.create(name="Empty Shop")
    busy_product = ProductFactory.create(
        seller_id=busy.id, rating_average=Decimal("4.00"), rating_count=2
    )
    stocked_products = [ProductFactory.create(seller_id=stocked.id) for _ in range(3)]
    await persist(db_session, buyer, busy, stocked, empty, busy_product, *stocked_products)
    await persist(
        db_session,
        OrderFactory.create(
            user_id=buyer.id,
            items=[(busy_product, 1)],
            order_status=OrderStatus.DELIVERED,
        ),
        # Pending orders do not count towards the ranking
        OrderFactory.create(user_id=buyer.id, items=[(stocked_products[0], 1)]),
    )

    ranking = await get_top_sellers(db_session, limit=10)

    assert [entry["name"] for entry in ranking] == ["Busy Shop", "Stocked Shop"]
    busy_entry = ranking[0]
    assert busy_entry["order_count"] == 1
    assert busy_entry["product_count"] == 1
    assert busy_entry["average_rating"] == 4.0
    assert ranking[1]["order_count"] == 0
    assert ranking[1]["product_count"] == 3
    assert "score" not in busy_entry


@pytest.mark.asyncio
@pytest.mark.unit
async def test_inactive_sellers_are_not_ranked(db_session):
    seller = SellerFactory.create(is_active=False)
    await persist(db_session, seller, ProductFactory.create(seller_id=seller.id))

    assert await get_top_sellers(db_session) == []
