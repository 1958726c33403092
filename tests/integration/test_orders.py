"""Integration tests for cart, checkout and order fulfilment endpoints."""

import re
from decimal import Decimal

import pytest
from services.marketplace_service.models import Product
from tests.factories import (
    AdminFactory,
    ProductFactory,
    SellerFactory,
    UserFactory,
    persist,
    shipping_address,
)


async def _shop(db, price="100", stock=5):
    seller = SellerFactory.create()
    buyer = UserFactory.create()
    product = ProductFactory.create(
        seller_id=seller.id, price=Decimal(price), stock=stock
    )
    await persist(db, seller, buyer, product)
    return seller, buyer, product


def _checkout(**overrides) -> dict:
    payload = {
        "shipping_address": shipping_address(),
        "payment_method": "cash_on_delivery",
        "shipping_cost": "50",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_lifecycle(client, db_session, auth_headers):
    _, buyer, product = await _shop(db_session, price="100", stock=5)
    headers = auth_headers(buyer)

    response = await client.get("/api/cart", headers=headers)
    assert response.status_code == 200
    assert response.json()["items"] == []

    response = await client.post(
        "/api/cart/items",
        json={"product_id": str(product.id), "quantity": 2},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    cart = response.json()
    assert cart["item_count"] == 2
    assert Decimal(cart["subtotal"]) == Decimal("200")
    item_id = cart["items"][0]["id"]

    response = await client.put(
        f"/api/cart/items/{item_id}", json={"quantity": 6}, headers=headers
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/cart/items/{item_id}", json={"quantity": 5}, headers=headers
    )
    assert response.json()["items"][0]["quantity"] == 5

    response = await client.delete("/api/cart", headers=headers)
    assert response.status_code == 200
    assert response.json()["items"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_requires_authentication(client):
    response = await client.get("/api/cart")

    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_from_cart(client, db_session, auth_headers):
    _, buyer, product = await _shop(db_session, price="100", stock=5)
    headers = auth_headers(buyer)
    await client.post(
        "/api/cart/items",
        json={"product_id": str(product.id), "quantity": 2},
        headers=headers,
    )

    response = await client.post(
        "/api/orders", json=_checkout(use_cart=True), headers=headers
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["message"] == "Order created successfully"
    order = body["order"]
    assert Decimal(order["total_amount"]) == Decimal("250")
    assert order["order_status"] == "pending"
    assert order["payment_status"] == "pending"
    assert re.fullmatch(r"[A-Z]{3}\d{6}", order["order_number"])
    assert order["shipping_address"]["city"] == "Addis Ababa"

    refreshed = await db_session.get(Product, product.id, populate_existing=True)
    assert refreshed.stock == 3

    cart = (await client.get("/api/cart", headers=headers)).json()
    assert cart["items"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_accepts_region_and_postal_code_aliases(
    client, db_session, auth_headers
):
    _, buyer, product = await _shop(db_session)
    address = shipping_address()
    address["region"] = address.pop("state")
    address["postal_code"] = address.pop("zip_code")

    response = await client.post(
        "/api/orders",
        json=_checkout(
            shipping_address=address,
            items=[{"product_id": str(product.id), "quantity": 1}],
        ),
        headers=auth_headers(buyer),
    )

    assert response.status_code == 201, response.text
    saved = response.json()["order"]["shipping_address"]
    assert saved["state"] == "Addis Ababa"
    assert saved["zip_code"] == "1000"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_insufficient_stock(client, db_session, auth_headers):
    _, buyer, product = await _shop(db_session, stock=1)

    response = await client.post(
        "/api/orders",
        json=_checkout(items=[{"product_id": str(product.id), "quantity": 2}]),
        headers=auth_headers(buyer),
    )

    assert response.status_code == 400
    assert response.json()["message"] == f"Insufficient stock for {product.name}"
    refreshed = await db_session.get(Product, product.id, populate_existing=True)
    assert refreshed.stock == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_invalid_payment_method(client, db_session, auth_headers):
    _, buyer, product = await _shop(db_session)

    response = await client.post(
        "/api/orders",
        json=_checkout(
            payment_method="bitcoin",
            items=[{"product_id": str(product.id), "quantity": 1}],
        ),
        headers=auth_headers(buyer),
    )

    assert response.status_code == 400


# ---------------------------------------------------------------------------
# Order views and fulfilment
# ---------------------------------------------------------------------------


async def _place_order(client, headers, product, quantity=1) -> dict:
    response = await client.post(
        "/api/orders",
        json=_checkout(items=[{"product_id": str(product.id), "quantity": quantity}]),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["order"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_and_seller_order_lists(client, db_session, auth_headers):
    seller, buyer, product = await _shop(db_session)
    order = await _place_order(client, auth_headers(buyer), product)

    mine = await client.get("/api/orders/my-orders", headers=auth_headers(buyer))
    assert [o["id"] for o in mine.json()] == [order["id"]]

    sold = await client.get("/api/orders/seller-orders", headers=auth_headers(seller))
    assert [o["id"] for o in sold.json()] == [order["id"]]

    forbidden = await client.get(
        "/api/orders/seller-orders", headers=auth_headers(buyer)
    )
    assert forbidden.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_detail_access(client, db_session, auth_headers):
    seller, buyer, product = await _shop(db_session)
    stranger = await persist(db_session, UserFactory.create())
    order = await _place_order(client, auth_headers(buyer), product)

    own = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(buyer))
    as_seller = await client.get(
        f"/api/orders/{order['id']}", headers=auth_headers(seller)
    )
    as_stranger = await client.get(
        f"/api/orders/{order['id']}", headers=auth_headers(stranger)
    )

    assert own.status_code == 200
    assert as_seller.status_code == 200
    assert as_stranger.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seller_updates_status_and_foreign_seller_is_forbidden(
    client, db_session, auth_headers
):
    seller, buyer, product = await _shop(db_session)
    other_seller = await persist(db_session, SellerFactory.create())
    order = await _place_order(client, auth_headers(buyer), product)

    response = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"order_status": "processing"},
        headers=auth_headers(other_seller),
    )
    assert response.status_code == 403

    response = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"order_status": "processing"},
        headers=auth_headers(seller),
    )
    assert response.status_code == 200, response.text
    assert response.json()["order_status"] == "processing"

    response = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"order_status": "shipped", "tracking_number": "ET123"},
        headers=auth_headers(seller),
    )
    assert response.status_code == 200
    assert response.json()["tracking_number"] == "ET123"

    response = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"order_status": "pending"},
        headers=auth_headers(seller),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_marks_order_paid(client, db_session, auth_headers):
    _, buyer, product = await _shop(db_session)
    admin = await persist(db_session, AdminFactory.create())
    order = await _place_order(client, auth_headers(buyer), product)

    response = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"payment_status": "paid"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200, response.text
    assert response.json()["payment_status"] == "paid"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_order_is_404(client, db_session, auth_headers):
    buyer = await persist(db_session, UserFactory.create())

    response = await client.get(
        "/api/orders/00000000-0000-0000-0000-000000000000",
        headers=auth_headers(buyer),
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Order not found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delivery_quote(client):
    response = await client.post(
        "/api/orders/delivery-quote",
        json={
            "origin": {"city": "Addis Ababa", "location": "Bole"},
            "destination": {"city": "Addis Ababa", "location": "Piassa"},
        },
    )

    assert response.status_code == 200
    assert response.json() == {"distance_km": 7.0, "delivery_fee": 300}
