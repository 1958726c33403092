"""Best-effort order emails, run as background tasks after the response."""

from libs.common.emails.marketplace import (
    send_order_confirmation_email,
    send_order_status_email,
    send_seller_new_order_email,
)
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def send_order_notifications(payload: dict) -> None:
    """Email the buyer and every distinct seller; failures are only logged."""
    order_number = payload["order_number"]
    buyer = payload["buyer"]

    try:
        await send_order_confirmation_email(
            to_email=buyer["email"],
            customer_name=buyer["name"],
            order_number=order_number,
            items=payload["items"],
            total_amount=payload["total_amount"],
            shipping_cost=payload["shipping_cost"],
            shipping_address=payload["shipping_address"],
            payment_method=payload["payment_method"],
        )
    except Exception as e:
        logger.error(f"Failed to send order confirmation for {order_number}: {e}")

    for seller in payload["sellers"]:
        try:
            await send_seller_new_order_email(
                to_email=seller["email"],
                seller_name=seller["name"],
                order_number=order_number,
                items=seller["items"],
                buyer_name=buyer["name"],
                shipping_address=payload["shipping_address"],
            )
        except Exception as e:
            logger.error(
                f"Failed to notify seller {seller['email']} of order {order_number}: {e}"
            )


async def send_status_notification(payload: dict) -> None:
    try:
        await send_order_status_email(
            to_email=payload["email"],
            customer_name=payload["name"],
            order_number=payload["order_number"],
            order_status=payload["order_status"],
            tracking_number=payload.get("tracking_number"),
        )
    except Exception as e:
        logger.error(
            f"Failed to send status email for order {payload['order_number']}: {e}"
        )
