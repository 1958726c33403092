"""Integration tests for admin endpoints and the public top-sellers ranking."""

from decimal import Decimal

import pytest
from services.marketplace_service.models import (
    OrderStatus,
    PaymentStatus,
    Product,
    User,
    UserRole,
)
from tests.factories import (
    AdminFactory,
    OrderFactory,
    ProductFactory,
    SellerFactory,
    UserFactory,
    persist,
)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_top_sellers_is_public(client, db_session):
    seller = SellerFactory.create(name="Public Shop")
    await persist(db_session, seller, ProductFactory.create(seller_id=seller.id))

    response = await client.get("/api/admin/top-sellers")

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Public Shop"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_routes_require_admin(client, db_session, auth_headers):
    seller = await persist(db_session, SellerFactory.create())

    anonymous = await client.get("/api/admin/stats")
    as_seller = await client.get("/api/admin/stats", headers=auth_headers(seller))

    assert anonymous.status_code == 401
    assert as_seller.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dashboard_and_order_stats(client, db_session, auth_headers):
    admin = AdminFactory.create()
    buyer = UserFactory.create()
    verified = SellerFactory.create(is_verified=True)
    pending = SellerFactory.create(is_verified=False, role=UserRole.PRODUCT_PROVIDER)
    product = ProductFactory.create(seller_id=verified.id, price=Decimal("100"))
    hidden = ProductFactory.create(seller_id=verified.id, is_active=False)
    await persist(db_session, admin, buyer, verified, pending, product, hidden)
    await persist(
        db_session,
        OrderFactory.create(
            user_id=buyer.id,
            items=[(product, 2)],
            order_status=OrderStatus.DELIVERED,
            payment_status=PaymentStatus.PAID,
        ),
        OrderFactory.create(user_id=buyer.id, items=[(product, 1)]),
    )
    headers = auth_headers(admin)

    stats = (await client.get("/api/admin/stats", headers=headers)).json()["stats"]
    assert stats == {
        "total_users": 4,
        "total_providers": 2,
        "verified_providers": 1,
        "pending_verification": 1,
        "total_products": 2,
        "active_products": 1,
        "total_orders": 2,
        "pending_orders": 1,
    }

    response = await client.get("/api/admin/orders/stats", headers=headers)
    order_stats = response.json()["stats"]
    assert order_stats["delivered_orders"] == 1
    assert order_stats["pending_orders"] == 1
    assert Decimal(order_stats["total_revenue"]) == Decimal("200")
    assert Decimal(order_stats["pending_payment"]) == Decimal("100")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_user_management(client, db_session, auth_headers):
    admin = AdminFactory.create()
    user = UserFactory.create(name="Meron", email="meron@example.com")
    await persist(db_session, admin, user)
    headers = auth_headers(admin)

    listing = await client.get(
        "/api/admin/users", params={"search": "meron"}, headers=headers
    )
    assert [u["id"] for u in listing.json()["users"]] == [str(user.id)]

    detail = await client.get(f"/api/admin/users/{user.id}", headers=headers)
    assert detail.json()["email"] == "meron@example.com"

    response = await client.put(
        f"/api/admin/users/{user.id}",
        json={"is_active": False, "role": "seller"},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["user"]["is_active"] is False
    assert response.json()["user"]["role"] == "seller"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_user_removes_their_products(client, db_session, auth_headers):
    admin = AdminFactory.create()
    seller = SellerFactory.create()
    product = ProductFactory.create(seller_id=seller.id)
    await persist(db_session, admin, seller, product)

    response = await client.delete(
        f"/api/admin/users/{seller.id}", headers=auth_headers(admin)
    )

    assert response.status_code == 200, response.text
    assert await db_session.get(User, seller.id, populate_existing=True) is None
    assert await db_session.get(Product, product.id, populate_existing=True) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admins_cannot_be_deleted(client, db_session, auth_headers):
    admin = AdminFactory.create()
    other_admin = AdminFactory.create(role=UserRole.SUPER_ADMIN)
    await persist(db_session, admin, other_admin)

    response = await client.delete(
        f"/api/admin/users/{other_admin.id}", headers=auth_headers(admin)
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Cannot delete admin users"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_provider(client, db_session, auth_headers):
    admin = AdminFactory.create()
    provider = SellerFactory.create(is_verified=False)
    buyer = UserFactory.create()
    await persist(db_session, admin, provider, buyer)
    headers = auth_headers(admin)

    response = await client.put(
        f"/api/admin/providers/{provider.id}/verify", headers=headers
    )
    assert response.status_code == 200, response.text
    assert response.json()["user"]["is_verified"] is True

    response = await client.put(f"/api/admin/providers/{buyer.id}/verify", headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "User is not a provider"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_moderation(client, db_session, auth_headers):
    admin = AdminFactory.create()
    seller = SellerFactory.create()
    product = ProductFactory.create(seller_id=seller.id)
    inactive = ProductFactory.create(seller_id=seller.id, is_active=False)
    await persist(db_session, admin, seller, product, inactive)
    headers = auth_headers(admin)

    listing = await client.get("/api/admin/products", headers=headers)
    assert listing.json()["pagination"]["total"] == 2

    response = await client.put(
        f"/api/admin/products/{product.id}/toggle", headers=headers
    )
    assert response.json()["product"]["is_active"] is False
    assert response.json()["message"] == "Product deactivated successfully"

    response = await client.put(
        f"/api/admin/products/{product.id}/best-seller",
        json={"is_best_seller": True},
        headers=headers,
    )
    assert response.json()["product"]["is_best_seller"] is True

    response = await client.delete(f"/api/admin/products/{inactive.id}", headers=headers)
    assert response.status_code == 200
    assert await db_session.get(Product, inactive.id, populate_existing=True) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_order_listing_filters(client, db_session, auth_headers):
    admin = AdminFactory.create()
    buyer = UserFactory.create(name="Selam")
    product = ProductFactory.create()
    await persist(db_session, admin, buyer, product)
    shipped = OrderFactory.create(
        user_id=buyer.id, items=[(product, 1)], order_status=OrderStatus.SHIPPED
    )
    await persist(
        db_session, shipped, OrderFactory.create(user_id=buyer.id, items=[(product, 1)])
    )
    headers = auth_headers(admin)

    response = await client.get(
        "/api/admin/orders", params={"order_status": "shipped"}, headers=headers
    )
    assert [o["id"] for o in response.json()["orders"]] == [str(shipped.id)]

    response = await client.get(
        "/api/admin/orders", params={"search": "selam"}, headers=headers
    )
    assert response.json()["pagination"]["total"] == 2
