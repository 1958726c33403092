"""Integration tests for the product catalog and reviews endpoints."""

import json
from decimal import Decimal

import pytest
from services.marketplace_service.models import OrderStatus, Product, UserRole
from services.marketplace_service.routers import products as products_router_module
from tests.factories import (
    OrderFactory,
    ProductFactory,
    SellerFactory,
    UserFactory,
    persist,
)

UPLOADED = [
    "https://res.cloudinary.com/demo/image/upload/v1/products/a.jpg",
    "https://res.cloudinary.com/demo/image/upload/v1/products/b.jpg",
]


@pytest.fixture
def fake_upload(monkeypatch):
    """Replace the media host upload with canned URLs."""
    calls = []

    async def _upload(files, folder=None):
        calls.append([f.filename for f in files])
        return UPLOADED[: len(files)]

    monkeypatch.setattr(products_router_module, "upload_images", _upload)
    return calls


def _form(**overrides) -> dict:
    data = {
        "name": "Handwoven Scarf",
        "description": "Cotton scarf from Bahir Dar",
        "price": "750",
        "category": "Fashion & Apparel",
        "stock": "12",
        "tags": "scarf, cotton",
        "specifications": json.dumps({"material": "cotton"}),
    }
    data.update(overrides)
    return data


def _images(count=2):
    return [
        ("images", (f"photo{i}.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg"))
        for i in range(count)
    ]


# ---------------------------------------------------------------------------
# Public catalog
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products_with_pagination(client, db_session):
    seller = SellerFactory.create()
    products = [ProductFactory.create(seller_id=seller.id) for _ in range(3)]
    await persist(db_session, seller, *products)

    response = await client.get("/api/products", params={"limit": 2})

    assert response.status_code == 200, response.text
    data = response.json()
    assert len(data["products"]) == 2
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    first = data["products"][0]
    assert first["seller"]["id"] == str(seller.id)
    assert Decimal(first["rating"]["average"]) == Decimal("0")
    assert first["rating"]["count"] == 0
    assert "rating_average" not in first


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products_rejects_unknown_sort_field(client):
    response = await client.get("/api/products", params={"sort_by": "password"})

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_product_and_missing_product(client, db_session):
    product = ProductFactory.create()
    await persist(db_session, product)

    found = await client.get(f"/api/products/{product.id}")
    missing = await client.get(f"/api/products/{ProductFactory.create().id}")

    assert found.status_code == 200
    assert found.json()["name"] == product.name
    assert missing.status_code == 404
    assert missing.json()["message"] == "Product not found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_best_sellers(client, db_session):
    seller = SellerFactory.create()
    star = ProductFactory.create(seller_id=seller.id, is_best_seller=True)
    plain = ProductFactory.create(seller_id=seller.id)
    await persist(db_session, seller, star, plain)

    response = await client.get("/api/products/best-sellers")

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [str(star.id)]


# ---------------------------------------------------------------------------
# Seller product management
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seller_creates_product_with_images(
    client, db_session, auth_headers, fake_upload
):
    seller = await persist(db_session, SellerFactory.create())

    response = await client.post(
        "/api/products",
        data=_form(),
        files=_images(2),
        headers=auth_headers(seller),
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["images"] == UPLOADED
    assert data["tags"] == ["scarf", "cotton"]
    assert data["specifications"] == {"material": "cotton"}
    assert data["seller_id"] == str(seller.id)
    assert Decimal(data["price"]) == Decimal("750")
    assert fake_upload == [["photo0.jpg", "photo1.jpg"]]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_cannot_create_product(client, db_session, auth_headers, fake_upload):
    buyer = await persist(db_session, UserFactory.create(role=UserRole.BUYER))

    response = await client.post(
        "/api/products", data=_form(), files=_images(1), headers=auth_headers(buyer)
    )

    assert response.status_code == 403
    assert response.json()["message"] == "User role 'buyer' is not authorized to access this route"
    assert fake_upload == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_product_with_bad_specifications(
    client, db_session, auth_headers, fake_upload
):
    seller = await persist(db_session, SellerFactory.create())

    response = await client.post(
        "/api/products",
        data=_form(specifications="not json"),
        files=_images(1),
        headers=auth_headers(seller),
    )

    assert response.status_code == 400
    assert fake_upload == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_owner_updates_and_deletes_product(client, db_session, auth_headers):
    seller = SellerFactory.create()
    product = ProductFactory.create(seller_id=seller.id, stock=4)
    await persist(db_session, seller, product)

    response = await client.put(
        f"/api/products/{product.id}",
        json={"stock": 9, "price": "120.50"},
        headers=auth_headers(seller),
    )
    assert response.status_code == 200, response.text
    assert response.json()["stock"] == 9
    assert Decimal(response.json()["price"]) == Decimal("120.50")

    response = await client.delete(
        f"/api/products/{product.id}", headers=auth_headers(seller)
    )
    assert response.status_code == 200
    assert await db_session.get(Product, product.id, populate_existing=True) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_other_seller_cannot_modify_product(client, db_session, auth_headers):
    owner = SellerFactory.create()
    intruder = SellerFactory.create()
    product = ProductFactory.create(seller_id=owner.id)
    await persist(db_session, owner, intruder, product)

    response = await client.put(
        f"/api/products/{product.id}",
        json={"price": "1"},
        headers=auth_headers(intruder),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to modify this product"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_images_to_product(client, db_session, auth_headers, fake_upload):
    seller = SellerFactory.create()
    product = ProductFactory.create(seller_id=seller.id, images=["https://x/1.jpg"])
    await persist(db_session, seller, product)

    response = await client.post(
        f"/api/products/{product.id}/images",
        files=_images(1),
        headers=auth_headers(seller),
    )

    assert response.status_code == 200, response.text
    assert response.json()["images"] == ["https://x/1.jpg", UPLOADED[0]]


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_review_updates_rating_and_is_single_per_user(
    client, db_session, auth_headers
):
    seller = SellerFactory.create()
    buyer = UserFactory.create()
    product = ProductFactory.create(seller_id=seller.id)
    await persist(db_session, seller, buyer, product)
    await persist(
        db_session,
        OrderFactory.create(
            user_id=buyer.id, items=[(product, 1)], order_status=OrderStatus.DELIVERED
        ),
    )

    response = await client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 4, "comment": "Nice"},
        headers=auth_headers(buyer),
    )
    assert response.status_code == 201, response.text
    assert response.json()["is_verified"] is True

    again = await client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 1},
        headers=auth_headers(buyer),
    )
    assert again.status_code == 400
    assert again.json()["message"] == "You have already reviewed this product"

    detail = (await client.get(f"/api/products/{product.id}")).json()
    assert Decimal(detail["rating"]["average"]) == Decimal("4")
    assert detail["rating"]["count"] == 1

    reviews = (await client.get(f"/api/products/{product.id}/reviews")).json()
    assert [r["comment"] for r in reviews] == ["Nice"]
    assert reviews[0]["user"]["id"] == str(buyer.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_review_rating_out_of_range(client, db_session, auth_headers):
    buyer = UserFactory.create()
    product = ProductFactory.create()
    await persist(db_session, buyer, product)

    response = await client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 6},
        headers=auth_headers(buyer),
    )

    assert response.status_code == 400
