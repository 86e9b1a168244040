"""Payment Schemas — Pydantic models for payment, refund, callback and statistics endpoints.

Invariants:
    - Refund amounts are > 0 with at most 2 decimal places
    - Callback status must be a GatewayOutcome (SUCCESS | FAILED)
    - payment_url / qr_code_data present only while the payment is PENDING
    - Display names come from the label tables in core/domain_types.py

Design Decisions:
    - RefundRequest carries payment_id (request-object refund);
      RefundProcessRequest takes it from the path (direct refund)
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from bookstore.core.domain_types import (
    GatewayOutcome,
    PaymentMethod,
    PaymentStatus,
    display_label,
)
from bookstore.core.payment_gateway import build_payment_url, build_qr_code_data


class PaymentCreate(BaseModel):
    order_id: UUID
    method: PaymentMethod


class RefundRequest(BaseModel):
    """Refund request object — admin submits payment id, amount and reason."""
    payment_id: UUID
    refund_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    refund_reason: str = Field(min_length=1, max_length=500)
    admin_note: str | None = Field(None, max_length=1000)


class RefundProcessRequest(BaseModel):
    refund_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    reason: str | None = Field(None, max_length=500)
    admin_note: str | None = Field(None, max_length=1000)


class GatewayCallback(BaseModel):
    """Asynchronous notification from the payment gateway."""
    transaction_id: str = Field(min_length=1, max_length=64)
    status: GatewayOutcome
    gateway_response: str | None = None


class SimulatedCallback(BaseModel):
    transaction_id: str = Field(min_length=1, max_length=64)
    success: bool


class PaymentResponse(BaseModel):
    id: UUID
    order_id: UUID
    method: PaymentMethod
    method_name: str
    amount: Decimal
    status: PaymentStatus
    status_name: str
    transaction_id: str
    gateway: str | None = None
    created_at: datetime
    paid_at: datetime | None = None
    refunded_at: datetime | None = None
    refund_amount: Decimal | None = None
    refund_reason: str | None = None
    payment_url: str | None = None
    qr_code_data: str | None = None


class PaymentStatistics(BaseModel):
    total_successful_payments: int
    total_payment_amount: Decimal
    total_refund_amount: Decimal
    pending_payments: int
    processing_payments: int
    failed_payments: int
    cancelled_payments: int


class CleanupResult(BaseModel):
    cancelled: int


def to_payment_response(payment, gateway_base_url: str) -> PaymentResponse:
    pending = payment.status == PaymentStatus.PENDING
    return PaymentResponse(
        id=payment.id,
        order_id=payment.order_id,
        method=payment.method,
        method_name=display_label(payment.method),
        amount=payment.amount,
        status=payment.status,
        status_name=display_label(payment.status),
        transaction_id=payment.transaction_id,
        gateway=payment.gateway,
        created_at=payment.created_at,
        paid_at=payment.paid_at,
        refunded_at=payment.refunded_at,
        refund_amount=payment.refund_amount,
        refund_reason=payment.refund_reason,
        payment_url=(
            build_payment_url(
                gateway_base_url, payment.transaction_id, payment.amount, payment.method,
            )
            if pending else None
        ),
        qr_code_data=(
            build_qr_code_data(payment.transaction_id, payment.amount)
            if pending else None
        ),
    )
