"""Payment Statistics — read-only rollup over persisted payment state.

Invariants:
    - Never mutates; three aggregate SELECTs, no row loading
    - Counts by status; sum(amount) over SUCCESS only; sum(refund_amount) over non-null
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.domain_types import PaymentStatus, Principal
from bookstore.core.enforce_access import require_admin
from bookstore.core.payment_stats import summarize_payments
from bookstore.models.payment import Payment


class PaymentStatisticsAggregator:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_statistics(self, principal: Principal) -> dict:
        require_admin(principal, "view payment statistics")

        rows = await self.db.execute(
            select(Payment.status, func.count(Payment.id)).group_by(Payment.status),
        )
        counts = {status: count for status, count in rows.all()}

        total_paid = await self.db.scalar(
            select(func.sum(Payment.amount))
            .where(Payment.status == PaymentStatus.SUCCESS),
        )
        total_refunded = await self.db.scalar(
            select(func.sum(Payment.refund_amount))
            .where(Payment.refund_amount.is_not(None)),
        )
        return summarize_payments(counts, total_paid, total_refunded)
