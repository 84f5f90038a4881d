"""
Store-related email templates.
"""

from decimal import Decimal
from html import escape
from typing import Optional

from libs.common.currency import format_rand
from libs.common.emails.client import EmailClient, log_email_result
from libs.common.emails.core import EmailFailed, EmailResult


def format_shipping_address(address: Optional[dict]) -> Optional[str]:
    """Single-line address, e.g. ``12 Long St, Cape Town, 8001``."""
    if not address:
        return None
    parts = [address.get("address"), address.get("city"), address.get("postal_code")]
    line = ", ".join(str(part) for part in parts if part)
    return line or None


def _item_label(item: dict) -> str:
    label = str(item["name"])
    if item.get("size"):
        label += f" ({item['size']})"
    return label


def render_order_confirmation(
    customer_name: str,
    order_number: str,
    items: list[dict],  # [{"name": str, "quantity": int, "price": Decimal, "size"?: str}]
    total: Decimal,
    shipping_address: Optional[dict] = None,
    store_name: str = "OUICESTNOUS",
) -> tuple[str, str, str]:
    """Return ``(subject, html_body, text_body)`` for an order confirmation."""
    subject = f"Order Confirmed - {order_number}"
    address_line = format_shipping_address(shipping_address)

    items_text = "\n".join(
        f"  - {_item_label(item)} x{item['quantity']} - "
        f"{format_rand(Decimal(str(item['price'])) * item['quantity'])}"
        for item in items
    )
    text_body = f"""Hi {customer_name},

We've received your order and it's being processed.

Order Number: {order_number}

Items:
{items_text}

Total: {format_rand(total)}
{f"Shipping Address: {address_line}" if address_line else ""}

We'll send you another email when your order ships.

Thank you for shopping with {store_name}!
"""

    rows = "".join(
        "<tr>"
        f"<td style='padding:12px;border-bottom:1px solid #eee'>{escape(_item_label(item))}</td>"
        f"<td style='padding:12px;border-bottom:1px solid #eee;text-align:center'>{int(item['quantity'])}</td>"
        f"<td style='padding:12px;border-bottom:1px solid #eee;text-align:right'>"
        f"{format_rand(Decimal(str(item['price'])) * item['quantity'])}</td>"
        "</tr>"
        for item in items
    )
    address_html = (
        f"""
        <div style="background:#f3f4f6;border-radius:8px;padding:16px;margin:24px 0">
            <p style="margin:0 0 8px 0;font-weight:bold">Shipping Address:</p>
            <p style="margin:0;color:#6b7280">{escape(address_line)}</p>
        </div>"""
        if address_line
        else ""
    )

    html_body = f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background:#f9fafb">
    <div style="max-width:600px;margin:0 auto;padding:40px 20px">
        <div style="background:#ffffff;border-radius:12px;padding:40px">
            <h1 style="color:#111827;font-size:24px;text-align:center">Order Confirmed!</h1>
            <p>Hi {escape(customer_name)},</p>
            <p>We've received your order and it's being processed. Here are your order details:</p>
            <div style="background:#f3f4f6;border-radius:8px;padding:16px;margin:24px 0">
                <p style="margin:0"><strong>Order Number:</strong> {escape(order_number)}</p>
            </div>
            <table style="width:100%;border-collapse:collapse;margin:24px 0">
                <thead>
                    <tr>
                        <th style="padding:12px;text-align:left">Item</th>
                        <th style="padding:12px;text-align:center">Qty</th>
                        <th style="padding:12px;text-align:right">Price</th>
                    </tr>
                </thead>
                <tbody>{rows}</tbody>
                <tfoot>
                    <tr>
                        <td colspan="2" style="padding:16px 12px;text-align:right;font-weight:bold">Total:</td>
                        <td style="padding:16px 12px;text-align:right;font-weight:bold">{format_rand(total)}</td>
                    </tr>
                </tfoot>
            </table>{address_html}
            <p>We'll send you another email when your order ships.</p>
            <p style="color:#9ca3af;font-size:14px;text-align:center">Thank you for shopping with {escape(store_name)}!</p>
        </div>
    </div>
</body>
</html>
"""
    return subject, html_body, text_body


async def send_order_confirmation_email(
    email_client: EmailClient,
    to_email: str,
    customer_name: str,
    order_number: str,
    items: list[dict],
    total: Decimal,
    shipping_address: Optional[dict] = None,
    store_name: str = "OUICESTNOUS",
) -> EmailResult:
    """
    Send the order confirmation once a payment has been verified.

    Runs as a background task after the verify response, so it never
    raises: an unexpected client error becomes an ``EmailFailed``.
    """
    subject, html_body, text_body = render_order_confirmation(
        customer_name=customer_name,
        order_number=order_number,
        items=items,
        total=total,
        shipping_address=shipping_address,
        store_name=store_name,
    )
    try:
        return await email_client.send(
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
        )
    except Exception as e:
        result = EmailFailed(
            provider=type(email_client).__name__,
            reason=f"{type(e).__name__}: {e}",
            retryable=True,
        )
        log_email_result(result, to_email, subject)
        return result
