"""Order & Payment Schemas — request validation at the API boundary.

Tests:
    - OrderCreate requires at least one line with quantity >= 1
    - CancelOrderRequest strips the reason and rejects whitespace-only text
    - Refund amounts must be positive with at most two decimals
    - Gateway callbacks accept only SUCCESS | FAILED
    - PaymentCreate carries only the order and the method
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from bookstore.core.domain_types import GatewayOutcome, PaymentMethod
from bookstore.schemas.order import CancelOrderRequest, OrderCreate
from bookstore.schemas.payment import (
    GatewayCallback, PaymentCreate, RefundProcessRequest, RefundRequest,
)


def test_order_create_as_pairs():
    book_id = uuid4()
    body = OrderCreate(lines=[{"book_id": str(book_id), "quantity": 2}])
    assert body.as_pairs() == [(book_id, 2)]


def test_order_create_rejects_empty_lines():
    with pytest.raises(ValidationError):
        OrderCreate(lines=[])


def test_order_create_rejects_zero_quantity():
    with pytest.raises(ValidationError):
        OrderCreate(lines=[{"book_id": str(uuid4()), "quantity": 0}])


def test_cancel_reason_stripped():
    assert CancelOrderRequest(reason="  torn cover ").reason == "torn cover"


def test_cancel_reason_whitespace_only_rejected():
    with pytest.raises(ValidationError, match="empty or whitespace"):
        CancelOrderRequest(reason="    ")


def test_refund_amount_must_be_positive():
    with pytest.raises(ValidationError):
        RefundProcessRequest(refund_amount=Decimal("0"))
    with pytest.raises(ValidationError):
        RefundProcessRequest(refund_amount=Decimal("-1.00"))


def test_refund_amount_at_most_two_decimals():
    with pytest.raises(ValidationError):
        RefundProcessRequest(refund_amount=Decimal("1.005"))
    assert RefundProcessRequest(refund_amount="12.5").refund_amount == Decimal("12.5")


def test_refund_request_requires_reason():
    with pytest.raises(ValidationError):
        RefundRequest(payment_id=uuid4(), refund_amount=Decimal("1.00"), refund_reason="")


def test_gateway_callback_status():
    cb = GatewayCallback(transaction_id="TXN_1_ABCDEF01", status="SUCCESS")
    assert cb.status == GatewayOutcome.SUCCESS
    with pytest.raises(ValidationError):
        GatewayCallback(transaction_id="TXN_1_ABCDEF01", status="PENDING")


def test_payment_create_ignores_gateway_urls():
    order_id = uuid4()
    body = PaymentCreate(
        order_id=str(order_id), method="ALIPAY",
        return_url="https://shop.example/done", notify_url="https://shop.example/notify",
    )
    assert body.model_dump() == {"order_id": order_id, "method": PaymentMethod.ALIPAY}
