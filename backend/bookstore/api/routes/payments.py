"""Payment Routes — payment lifecycle, refunds, gateway callbacks and statistics.

Invariants:
    - Routes never contain business logic (delegate to PaymentProcessor)
    - Gateway callbacks carry no Principal; every other route resolves one
    - pay link / QR payload rendered only while a payment is PENDING

Design Decisions:
    - /statistics and /order/{order_id} registered before /{payment_id} so the
      literal segments are never parsed as ids
    - /callback/simulate kept as a development stand-in for the real gateway
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.api.dependencies import get_principal
from bookstore.config import get_settings
from bookstore.core.domain_types import (
    GatewayOutcome, PaymentStatus, Principal, TransactionId,
)
from bookstore.infrastructure.database import get_db
from bookstore.schemas.payment import (
    CleanupResult,
    GatewayCallback,
    PaymentCreate,
    PaymentResponse,
    PaymentStatistics,
    RefundProcessRequest,
    RefundRequest,
    SimulatedCallback,
    to_payment_response,
)
from bookstore.services.payment_processor import PaymentProcessor
from bookstore.services.payment_statistics import PaymentStatisticsAggregator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


def _render(payment) -> PaymentResponse:
    return to_payment_response(payment, get_settings().payment_gateway_base_url)


@router.post(
    "", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    body: PaymentCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentProcessor(db).create_payment(
        body.order_id, body.method, principal,
    )
    return _render(payment)


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payments = await PaymentProcessor(db).list_payments(
        principal, status_filter, limit, offset,
    )
    return [_render(payment) for payment in payments]


@router.get("/statistics", response_model=PaymentStatistics)
async def payment_statistics(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentStatisticsAggregator(db).get_statistics(principal)


@router.get("/order/{order_id}", response_model=PaymentResponse)
async def get_payment_by_order(
    order_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentProcessor(db).get_payment_by_order(order_id, principal)
    return _render(payment)


@router.post("/callback", response_model=PaymentResponse)
async def gateway_callback(
    body: GatewayCallback, db: AsyncSession = Depends(get_db),
):
    """Gateway notification. Redelivery of the same outcome is a no-op."""
    payment = await PaymentProcessor(db).apply_gateway_outcome(
        TransactionId(body.transaction_id), body.status, body.gateway_response,
    )
    return _render(payment)


@router.post("/callback/simulate", response_model=PaymentResponse)
async def simulate_callback(
    body: SimulatedCallback, db: AsyncSession = Depends(get_db),
):
    outcome = GatewayOutcome.SUCCESS if body.success else GatewayOutcome.FAILED
    payment = await PaymentProcessor(db).apply_gateway_outcome(
        TransactionId(body.transaction_id), outcome, f"Simulated {outcome.value}",
    )
    return _render(payment)


@router.post("/refund", response_model=PaymentResponse)
async def request_refund(
    body: RefundRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentProcessor(db).request_refund(body, principal)
    return _render(payment)


@router.post("/admin/cleanup-expired", response_model=CleanupResult)
async def cleanup_expired(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Cancel PENDING payments older than the configured expiry window."""
    cancelled = await PaymentProcessor(db).cleanup_expired_payments(principal=principal)
    return CleanupResult(cancelled=cancelled)


@router.post("/admin/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: UUID,
    body: RefundProcessRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentProcessor(db).refund(
        payment_id, body.refund_amount, body.reason, body.admin_note, principal,
    )
    return _render(payment)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentProcessor(db).get_payment(payment_id, principal)
    return _render(payment)


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    payment_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Admin confirmation, equivalent to a SUCCESS gateway outcome."""
    payment = await PaymentProcessor(db).confirm_payment(payment_id, principal)
    return _render(payment)


@router.post("/{payment_id}/cancel", response_model=PaymentResponse)
async def cancel_payment(
    payment_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentProcessor(db).cancel_payment(payment_id, principal)
    return _render(payment)
