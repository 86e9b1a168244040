"""Payment Stats — summary of aggregated counts and sums.

Tests:
    - Missing statuses and sums default to zero
    - Float sums (SQLite) normalized to Decimal cents
"""

from decimal import Decimal

from bookstore.core.domain_types import PaymentStatus
from bookstore.core.payment_stats import summarize_payments


def test_empty_summary():
    summary = summarize_payments({}, None, None)
    assert summary == {
        "total_successful_payments": 0,
        "total_payment_amount": Decimal("0.00"),
        "total_refund_amount": Decimal("0.00"),
        "pending_payments": 0,
        "processing_payments": 0,
        "failed_payments": 0,
        "cancelled_payments": 0,
    }


def test_counts_and_sums():
    summary = summarize_payments(
        {
            PaymentStatus.SUCCESS: 3,
            PaymentStatus.PENDING: 2,
            PaymentStatus.FAILED: 1,
            PaymentStatus.REFUNDED: 4,
        },
        Decimal("150.00"),
        37.5,
    )
    assert summary["total_successful_payments"] == 3
    assert summary["pending_payments"] == 2
    assert summary["failed_payments"] == 1
    assert summary["cancelled_payments"] == 0
    assert summary["total_payment_amount"] == Decimal("150.00")
    assert summary["total_refund_amount"] == Decimal("37.50")
