"""Payment Stats — pure summary of aggregated payment counts and sums.

Invariants:
    - All inputs are pre-aggregated values (no IO, no DB)
    - Missing statuses count as 0, missing sums as 0.00
    - Never raises
"""

from decimal import Decimal

from bookstore.core.domain_types import PaymentStatus, ZERO, to_money


def summarize_payments(
    counts: dict[PaymentStatus, int],
    total_paid: Decimal | float | None,
    total_refunded: Decimal | float | None,
) -> dict:
    """Flatten per-status counts and sums into the statistics payload."""
    return {
        "total_successful_payments": counts.get(PaymentStatus.SUCCESS, 0),
        "total_payment_amount": _money(total_paid),
        "total_refund_amount": _money(total_refunded),
        "pending_payments": counts.get(PaymentStatus.PENDING, 0),
        "processing_payments": counts.get(PaymentStatus.PROCESSING, 0),
        "failed_payments": counts.get(PaymentStatus.FAILED, 0),
        "cancelled_payments": counts.get(PaymentStatus.CANCELLED, 0),
    }


def _money(value: Decimal | float | None) -> Decimal:
    # SQLite hands SUM() back as float
    if value is None:
        return ZERO
    return to_money(Decimal(str(value)))
