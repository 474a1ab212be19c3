"""
New-order notifications to a Telegram chat.

Runs as a background task after the order response is settled. Missing
credentials turn it into a no-op; delivery errors are logged and dropped.
"""
from html import escape
from typing import Optional

import httpx
import structlog

from config import telegram_credentials
from schemas import Order

logger = structlog.get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"
TIMEOUT_SECONDS = 10.0


def _field(value: Optional[str]) -> str:
    return escape(value) if value else "-"


def format_order_message(order: Order) -> str:
    customer = order.customer_info
    lines = "\n".join(
        f"• {escape(item.name)} (x{item.quantity}) - ${item.price * item.quantity:.2f}"
        for item in order.items
    )
    payment = "✅ PAID (ABA QR)" if order.payment_method == "qr" else "🚚 PAY ON DELIVERY"

    return (
        "<b>🚀 NEW ORDER RECEIVED</b>\n"
        "----------------------------\n"
        f"<b>Order ID:</b> <code>{escape(order.id)}</code>\n"
        f"<b>Time:</b> {order.created_at:%Y-%m-%d %H:%M} UTC\n"
        f"<b>Payment:</b> {payment}\n"
        "\n"
        "<b>👤 CUSTOMER INFO:</b>\n"
        f"• <b>Name:</b> {_field(customer.name)}\n"
        f"• <b>Phone:</b> {_field(customer.phone)}\n"
        f"• <b>Email:</b> {_field(customer.email)}\n"
        f"• <b>Address:</b> {_field(customer.address)}\n"
        "\n"
        "<b>📦 CART SUMMARY:</b>\n"
        f"{lines}\n"
        "\n"
        f"<b>Delivery:</b> ${order.delivery_fee:.2f}\n"
        f"<b>💰 TOTAL AMOUNT:</b> <b>${order.total:.2f}</b>\n"
        "----------------------------\n"
        "<i>📢 Action Required: Please prepare for delivery!</i>"
    )


def send_order_notification(order: Order) -> bool:
    """Post the order summary. Returns True only when Telegram accepted it."""
    token, chat_id = telegram_credentials()
    if not token or not chat_id:
        logger.debug("notify.skipped", order_id=order.id, reason="telegram not configured")
        return False

    try:
        response = httpx.post(
            f"{TELEGRAM_API}/bot{token}/sendMessage",
            json={
                "chat_id": chat_id,
                "text": format_order_message(order),
                "parse_mode": "HTML",
            },
            timeout=TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning("notify.failed", order_id=order.id, status=exc.response.status_code)
        return False
    except httpx.HTTPError as exc:
        # the request URL carries the bot token, so only the error type is logged
        logger.warning("notify.failed", order_id=order.id, error=type(exc).__name__)
        return False

    logger.info("notify.sent", order_id=order.id)
    return True
