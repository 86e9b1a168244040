"""Payment State Enforcement — payment state machine, gateway idempotency and refund accounting.

Invariants:
    - A payment is created only for a PENDING order without an existing payment
    - Gateway outcomes apply only from PENDING/PROCESSING; a repeated outcome is a no-op
    - 0 <= refund_amount <= amount at all times
    - refund_amount == amount  <=>  REFUNDED;  0 < refund_amount < amount  <=>  PARTIAL_REFUNDED
    - Pure: guards raise typed errors, evaluators return descriptors; no IO, no clock

Design Decisions:
    - evaluate_gateway_outcome returns an action instead of mutating (shell applies it)
    - compute_refund returns a RefundResult dataclass so the shell writes all fields at once
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from bookstore.core.domain_types import (
    GatewayOutcome,
    OrderStatus,
    PaymentStatus,
    ZERO,
    to_money,
)
from bookstore.core.errors import (
    AmountExceededError,
    DuplicatePaymentError,
    ErrorContext,
    InvalidStateTransitionError,
    ValidationError,
)


AWAITING_OUTCOME_STATES: frozenset[PaymentStatus] = frozenset({
    PaymentStatus.PENDING, PaymentStatus.PROCESSING,
})
REFUNDABLE_STATES: frozenset[PaymentStatus] = frozenset({
    PaymentStatus.SUCCESS, PaymentStatus.PARTIAL_REFUNDED,
})
# States already reached by an earlier delivery of the same outcome
OUTCOME_APPLIED_STATES: dict[GatewayOutcome, frozenset[PaymentStatus]] = {
    GatewayOutcome.SUCCESS: frozenset({
        PaymentStatus.SUCCESS,
        PaymentStatus.PARTIAL_REFUNDED,
        PaymentStatus.REFUNDED,
    }),
    GatewayOutcome.FAILED: frozenset({PaymentStatus.FAILED}),
}


class GatewayAction(str, Enum):
    APPLY = "apply"
    NOOP = "noop"


@dataclass(frozen=True)
class RefundResult:
    refund_amount: Decimal
    status: PaymentStatus

    @property
    def fully_refunded(self) -> bool:
        return self.status == PaymentStatus.REFUNDED


def check_payment_creatable(
    order_status: OrderStatus, has_existing_payment: bool, order_id: str,
) -> None:
    if order_status != OrderStatus.PENDING:
        raise InvalidStateTransitionError(
            "order", order_status.value, "create payment",
            ErrorContext(order_id=order_id),
        )
    if has_existing_payment:
        raise DuplicatePaymentError(order_id)


def evaluate_gateway_outcome(
    status: PaymentStatus, outcome: GatewayOutcome, transaction_id: str,
) -> GatewayAction:
    """Decide how a gateway notification applies to a payment in `status`."""
    if status in AWAITING_OUTCOME_STATES:
        return GatewayAction.APPLY
    if status in OUTCOME_APPLIED_STATES[outcome]:
        return GatewayAction.NOOP
    raise InvalidStateTransitionError(
        "payment", status.value, f"apply gateway outcome {outcome.value}",
        ErrorContext(transaction_id=transaction_id),
    )


def check_payment_pending(
    status: PaymentStatus, operation: str, payment_id: str,
) -> None:
    """confirm_payment and cancel_payment both require PENDING."""
    if status != PaymentStatus.PENDING:
        raise InvalidStateTransitionError(
            "payment", status.value, operation,
            ErrorContext(payment_id=payment_id),
        )


def compute_refund(
    status: PaymentStatus,
    amount: Decimal,
    refunded_so_far: Decimal | None,
    requested: Decimal,
    payment_id: str,
) -> RefundResult:
    """Accumulate a refund. Raises before any state would be written."""
    if requested <= ZERO:
        raise ValidationError(
            "Refund amount must be greater than 0", "refund_amount",
            ErrorContext(payment_id=payment_id),
        )
    if status not in REFUNDABLE_STATES:
        raise InvalidStateTransitionError(
            "payment", status.value, "refund",
            ErrorContext(payment_id=payment_id),
        )

    current = refunded_so_far if refunded_so_far is not None else ZERO
    total = to_money(current + requested)
    if total > amount:
        raise AmountExceededError(
            to_money(requested), to_money(amount - current),
            ErrorContext(payment_id=payment_id),
        )

    new_status = (
        PaymentStatus.REFUNDED if total == amount
        else PaymentStatus.PARTIAL_REFUNDED
    )
    return RefundResult(refund_amount=total, status=new_status)


def expiry_cutoff(now: datetime, ttl: timedelta) -> datetime:
    """PENDING payments created before this instant are expired."""
    return now - ttl
