from datetime import datetime, timezone

import httpx
import pytest

import notifier
from schemas import CustomerInfo, Order, OrderItem


@pytest.fixture
def order():
    return Order(
        id="ORD-004217",
        customer_info=CustomerInfo(name="Dara <Sok>", phone="012345678", address="12 Riverside"),
        items=[
            OrderItem(id="a1", name="Rose Serum", category="serum", price=10.0, cost_price=4.0, quantity=2),
            OrderItem(id="b2", name="Clay Mask", category="mask", price=7.5, quantity=1),
        ],
        subtotal=27.5,
        delivery_fee=1.5,
        total=29.0,
        payment_method="qr",
        status="completed",
        created_at=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
    )


def test_message_lists_items_and_total(order):
    text = notifier.format_order_message(order)

    assert "<code>ORD-004217</code>" in text
    assert "PAID (ABA QR)" in text
    assert "• Rose Serum (x2) - $20.00" in text
    assert "• Clay Mask (x1) - $7.50" in text
    assert "<b>$29.00</b>" in text
    assert "Dara &lt;Sok&gt;" in text
    assert "<b>Email:</b> -" in text


def test_pay_on_delivery_label(order):
    text = notifier.format_order_message(order.model_copy(update={"payment_method": "delivery"}))

    assert "PAY ON DELIVERY" in text


def test_no_credentials_is_a_no_op(order, monkeypatch):
    def must_not_call(*args, **kwargs):
        raise AssertionError("telegram called without credentials")

    monkeypatch.setattr(notifier.httpx, "post", must_not_call)

    assert notifier.send_order_notification(order) is False


def test_sends_to_telegram(order, monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        return httpx.Response(200, json={"ok": True}, request=httpx.Request("POST", url))

    monkeypatch.setattr(notifier.httpx, "post", fake_post)

    assert notifier.send_order_notification(order) is True
    url, body = calls[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert body["chat_id"] == "42"
    assert body["parse_mode"] == "HTML"
    assert "ORD-004217" in body["text"]


@pytest.mark.parametrize("failure", [
    httpx.ConnectError("no route"),
    httpx.ReadTimeout("slow"),
])
def test_transport_errors_are_swallowed(order, monkeypatch, failure):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")

    def failing_post(*args, **kwargs):
        raise failure

    monkeypatch.setattr(notifier.httpx, "post", failing_post)

    assert notifier.send_order_notification(order) is False


def test_rejected_request_is_swallowed(order, monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
    monkeypatch.setattr(
        notifier.httpx, "post",
        lambda url, **kwargs: httpx.Response(401, request=httpx.Request("POST", url)),
    )

    assert notifier.send_order_notification(order) is False
