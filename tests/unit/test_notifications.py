"""Unit tests for order emails; SMTP is replaced by a recorder."""

from decimal import Decimal

import pytest
from libs.common.emails import marketplace
from services.marketplace_service.services import notifications


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    async def _record(to_email, subject, body, html_body=None, **kwargs):
        sent.append({"to": to_email, "subject": subject, "body": body, "html": html_body})
        return True

    monkeypatch.setattr(marketplace, "send_email", _record)
    return sent


def _order_payload() -> dict:
    return {
        "order_number": "ELE123456",
        "buyer": {"email": "buyer@example.com", "name": "Buyer"},
        "items": [{"name": "Phone", "quantity": 2, "price": Decimal("1500")}],
        "total_amount": Decimal("3050"),
        "shipping_cost": Decimal("50"),
        "shipping_address": {
            "street": "Bole Road 12",
            "city": "Addis Ababa",
            "country": "Ethiopia",
        },
        "payment_method": "cash_on_delivery",
        "sellers": [
            {
                "email": "seller@example.com",
                "name": "Phone Shop",
                "items": [{"name": "Phone", "quantity": 2, "price": Decimal("1500")}],
            }
        ],
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_notifications_reach_buyer_and_each_seller(outbox):
    await notifications.send_order_notifications(_order_payload())

    assert [mail["to"] for mail in outbox] == ["buyer@example.com", "seller@example.com"]
    confirmation = outbox[0]
    assert confirmation["subject"] == "Order Confirmation #ELE123456"
    assert "ETB 3,050.00" in confirmation["body"]
    assert "Cash On Delivery" in confirmation["body"]
    assert "Bole Road 12, Addis Ababa, Ethiopia" in confirmation["body"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_seller_email_failure_does_not_stop_other_sellers(monkeypatch):
    delivered = []

    async def _flaky(to_email, subject, body, html_body=None, **kwargs):
        if to_email == "broken@example.com":
            raise RuntimeError("mailbox unavailable")
        delivered.append(to_email)
        return True

    monkeypatch.setattr(marketplace, "send_email", _flaky)
    payload = _order_payload()
    payload["sellers"].insert(
        0, {"email": "broken@example.com", "name": "Broken", "items": payload["items"]}
    )

    await notifications.send_order_notifications(payload)

    assert delivered == ["buyer@example.com", "seller@example.com"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_shipped_status_email_includes_tracking(outbox):
    await notifications.send_status_notification(
        {
            "email": "buyer@example.com",
            "name": "Buyer",
            "order_number": "ELE123456",
            "order_status": "shipped",
            "tracking_number": "ET-99",
        }
    )

    assert outbox[0]["subject"] == "Your Order #ELE123456 has been Shipped!"
    assert "Tracking Number: ET-99" in outbox[0]["body"]
