"""Payment State Enforcement — creation guard, gateway idempotency, refund accounting.

Tests:
    - Payment creation requires a PENDING order without a payment
    - Gateway outcome: APPLY from PENDING/PROCESSING, NOOP on redelivery,
      InvalidStateTransition on a contradicting outcome
    - compute_refund: validation order, accumulation, REFUNDED at the exact total
    - Expiry cutoff arithmetic
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bookstore.core.domain_types import GatewayOutcome, OrderStatus, PaymentStatus
from bookstore.core.enforce_payment import (
    GatewayAction,
    check_payment_creatable,
    check_payment_pending,
    compute_refund,
    evaluate_gateway_outcome,
    expiry_cutoff,
)
from bookstore.core.errors import (
    AmountExceededError,
    DuplicatePaymentError,
    InvalidStateTransitionError,
    ValidationError,
)


# ─── Creation ────────────────────────────────────────────────────

def test_payment_creatable_for_pending_order():
    check_payment_creatable(OrderStatus.PENDING, False, "o-1")


@pytest.mark.parametrize(
    "status", [OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.CANCELLED],
)
def test_payment_not_creatable_outside_pending(status):
    with pytest.raises(InvalidStateTransitionError):
        check_payment_creatable(status, False, "o-1")


def test_second_payment_is_duplicate():
    with pytest.raises(DuplicatePaymentError) as exc:
        check_payment_creatable(OrderStatus.PENDING, True, "o-1")
    assert exc.value.http_status == 409
    assert exc.value.context.order_id == "o-1"


# ─── Gateway outcomes ────────────────────────────────────────────

@pytest.mark.parametrize("status", [PaymentStatus.PENDING, PaymentStatus.PROCESSING])
@pytest.mark.parametrize("outcome", list(GatewayOutcome))
def test_outcome_applies_while_awaiting(status, outcome):
    assert evaluate_gateway_outcome(status, outcome, "TXN_1") == GatewayAction.APPLY


@pytest.mark.parametrize("status", [
    PaymentStatus.SUCCESS, PaymentStatus.PARTIAL_REFUNDED, PaymentStatus.REFUNDED,
])
def test_redelivered_success_is_noop(status):
    assert evaluate_gateway_outcome(
        status, GatewayOutcome.SUCCESS, "TXN_1",
    ) == GatewayAction.NOOP


def test_redelivered_failure_is_noop():
    assert evaluate_gateway_outcome(
        PaymentStatus.FAILED, GatewayOutcome.FAILED, "TXN_1",
    ) == GatewayAction.NOOP


def test_failure_after_success_is_rejected():
    with pytest.raises(InvalidStateTransitionError) as exc:
        evaluate_gateway_outcome(PaymentStatus.SUCCESS, GatewayOutcome.FAILED, "TXN_1")
    assert exc.value.context.transaction_id == "TXN_1"


def test_success_on_cancelled_payment_is_rejected():
    with pytest.raises(InvalidStateTransitionError):
        evaluate_gateway_outcome(
            PaymentStatus.CANCELLED, GatewayOutcome.SUCCESS, "TXN_1",
        )


def test_check_payment_pending():
    check_payment_pending(PaymentStatus.PENDING, "confirm payment", "p-1")
    with pytest.raises(InvalidStateTransitionError) as exc:
        check_payment_pending(PaymentStatus.SUCCESS, "cancel payment", "p-1")
    assert exc.value.message == "Cannot cancel payment: payment is SUCCESS"


# ─── Refunds ─────────────────────────────────────────────────────

def test_partial_then_full_refund():
    first = compute_refund(
        PaymentStatus.SUCCESS, Decimal("100.00"), None, Decimal("40.00"), "p-1",
    )
    assert first.refund_amount == Decimal("40.00")
    assert first.status == PaymentStatus.PARTIAL_REFUNDED
    assert not first.fully_refunded

    second = compute_refund(
        first.status, Decimal("100.00"), first.refund_amount, Decimal("60.00"), "p-1",
    )
    assert second.refund_amount == Decimal("100.00")
    assert second.status == PaymentStatus.REFUNDED
    assert second.fully_refunded


def test_refund_exceeding_remaining_balance():
    with pytest.raises(AmountExceededError) as exc:
        compute_refund(
            PaymentStatus.PARTIAL_REFUNDED, Decimal("100.00"),
            Decimal("40.00"), Decimal("60.01"), "p-1",
        )
    assert exc.value.remaining == Decimal("60.00")
    assert exc.value.http_status == 400


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
def test_non_positive_refund_is_validation_error(amount):
    # Validated before the state check, even on a non-refundable payment
    with pytest.raises(ValidationError):
        compute_refund(PaymentStatus.PENDING, Decimal("100.00"), None, amount, "p-1")


@pytest.mark.parametrize("status", [
    PaymentStatus.PENDING, PaymentStatus.FAILED,
    PaymentStatus.CANCELLED, PaymentStatus.REFUNDED,
])
def test_refund_requires_refundable_state(status):
    with pytest.raises(InvalidStateTransitionError):
        compute_refund(status, Decimal("100.00"), None, Decimal("1.00"), "p-1")


def test_expiry_cutoff():
    now = datetime(2026, 1, 2, 12, 0, tzinfo=timezone.utc)
    assert expiry_cutoff(now, timedelta(hours=24)) == datetime(
        2026, 1, 1, 12, 0, tzinfo=timezone.utc,
    )
