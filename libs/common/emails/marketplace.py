"""
Marketplace email templates.

Order emails are rendered from plain dicts built after the order transaction
commits, so they never touch ORM objects or an open session.
"""

from decimal import Decimal
from typing import Optional

from libs.common.emails.core import send_email


def _money(value) -> str:
    return f"ETB {Decimal(str(value)):,.2f}"


def _items_text(items: list[dict]) -> str:
    return "\n".join(
        f"- {item['name']} x{item['quantity']} @ {_money(item['price'])}"
        for item in items
    )


def _items_html(items: list[dict]) -> str:
    return "".join(
        f"<tr><td>{item['name']}</td>"
        f"<td style=\"text-align:center\">{item['quantity']}</td>"
        f"<td style=\"text-align:right\">{_money(item['price'])}</td></tr>"
        for item in items
    )


def _format_address(address: dict) -> str:
    parts = [
        address.get("street"),
        address.get("city"),
        address.get("state"),
        address.get("zip_code"),
        address.get("country"),
    ]
    return ", ".join(part for part in parts if part)


_STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: linear-gradient(135deg, #f97316 0%, #ea580c 100%); color: white; padding: 30px; border-radius: 12px 12px 0 0; }
        .content { background: #f8fafc; padding: 30px; border-radius: 0 0 12px 12px; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 8px 0; border-bottom: 1px solid #e2e8f0; text-align: left; }
        .footer { text-align: center; color: #64748b; font-size: 14px; margin-top: 20px; }
"""


def _wrap_html(title: str, subtitle: str, inner: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1 style="margin: 0;">{title}</h1>
            <p style="margin: 10px 0 0 0; opacity: 0.9;">{subtitle}</p>
        </div>
        <div class="content">
            {inner}
            <div class="footer">
                <p>The da-hi Marketplace Team</p>
            </div>
        </div>
    </div>
</body>
</html>
"""


async def send_order_confirmation_email(
    to_email: str,
    customer_name: str,
    order_number: str,
    items: list[dict],
    total_amount,
    shipping_cost,
    shipping_address: dict,
    payment_method: str,
) -> bool:
    """
    Send order confirmation to the buyer.

    Args:
        items: List of dicts with name, quantity, price
        shipping_address: Address dict as stored on the order
    """
    subject = f"Order Confirmation #{order_number}"
    address = _format_address(shipping_address)
    payment_label = payment_method.replace("_", " ").title()

    body = f"""Hi {customer_name},

Thank you for your order! We've received it and the sellers have been notified.

Order #{order_number}

Items:
{_items_text(items)}

Shipping: {_money(shipping_cost)}
Total: {_money(total_amount)}

Payment method: {payment_label}
Ship to: {address}

We'll let you know when your order ships.

The da-hi Marketplace Team
"""

    inner = f"""
            <p>Hi {customer_name},</p>
            <p>Thank you for your order! We've received it and the sellers have been notified.</p>
            <table>
                <thead>
                    <tr><th>Item</th><th style="text-align:center">Qty</th><th style="text-align:right">Price</th></tr>
                </thead>
                <tbody>{_items_html(items)}</tbody>
            </table>
            <p>Shipping: <strong>{_money(shipping_cost)}</strong><br/>
            Total: <strong>{_money(total_amount)}</strong></p>
            <p>Payment method: {payment_label}<br/>Ship to: {address}</p>
"""
    html_body = _wrap_html("Order Confirmed!", f"Order #{order_number}", inner)

    return await send_email(to_email, subject, body, html_body)


async def send_seller_new_order_email(
    to_email: str,
    seller_name: str,
    order_number: str,
    items: list[dict],
    buyer_name: str,
    shipping_address: dict,
) -> bool:
    """Notify a seller that an order contains their products (their lines only)."""
    subject = f"New Order #{order_number}"
    address = _format_address(shipping_address)
    phone = shipping_address.get("phone") or ""

    body = f"""Hi {seller_name},

You have a new order from {buyer_name}.

Order #{order_number}

Your items:
{_items_text(items)}

Ship to: {address}
Phone: {phone}

Please process this order from your seller dashboard.

The da-hi Marketplace Team
"""

    inner = f"""
            <p>Hi {seller_name},</p>
            <p>You have a new order from <strong>{buyer_name}</strong>.</p>
            <table>
                <thead>
                    <tr><th>Item</th><th style="text-align:center">Qty</th><th style="text-align:right">Price</th></tr>
                </thead>
                <tbody>{_items_html(items)}</tbody>
            </table>
            <p>Ship to: {address}<br/>Phone: {phone}</p>
            <p>Please process this order from your seller dashboard.</p>
"""
    html_body = _wrap_html("New Order", f"Order #{order_number}", inner)

    return await send_email(to_email, subject, body, html_body)


async def send_order_status_email(
    to_email: str,
    customer_name: str,
    order_number: str,
    order_status: str,
    tracking_number: Optional[str] = None,
) -> bool:
    """
    Send notification when an order is shipped or delivered.
    """
    if order_status == "shipped":
        subject = f"Your Order #{order_number} has been Shipped!"
        title = "Order Shipped!"
        tracking_info = (
            f"\n\nTracking Number: {tracking_number}" if tracking_number else ""
        )
        action_text = f"Your order is on its way!{tracking_info}"
        tracking_html = (
            f"<br/><br/><strong>Tracking Number:</strong> {tracking_number}"
            if tracking_number
            else ""
        )
        action_html = f"<p>Your order is on its way to you.{tracking_html}</p>"
    else:
        subject = f"Your Order #{order_number} has been Delivered"
        title = "Order Delivered"
        action_text = "Your order has been delivered. Enjoy your purchase!"
        action_html = "<p>Your order has been delivered. Enjoy your purchase!</p>"

    body = f"""Hi {customer_name},

{title}

Order #{order_number}

{action_text}

Thank you for shopping with da-hi!

The da-hi Marketplace Team
"""

    inner = f"""
            <p>Hi {customer_name},</p>
            {action_html}
            <p style="margin-top: 20px;">Thank you for shopping with da-hi!</p>
"""
    html_body = _wrap_html(title, f"Order #{order_number}", inner)

    return await send_email(to_email, subject, body, html_body)
