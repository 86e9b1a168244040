"""Payment Processor — payment state machine between the gateway, admins and orders.

Invariants:
    - At most one payment per order (service check + UNIQUE constraint)
    - amount copied from order.total_price at creation and never changed
    - A gateway outcome is applied exactly once per transaction id; redelivery of the
      same outcome is a no-op, a contradicting outcome is rejected
    - SUCCESS cascades the order PENDING -> PAID; a full refund cascades it to CANCELLED
    - Refund accumulation is serialized per payment (row lock + version column);
      a lost race raises ConcurrencyError, never silently overwrites
    - Full refunds and expiry cleanup do NOT restore stock (see DESIGN.md)

Design Decisions:
    - Pure decisions (idempotency, refund arithmetic) live in core/enforce_payment.py;
      this module loads rows, applies the descriptor, commits
    - cleanup_expired_payments issues one conditional UPDATE per payment, each in its
      own savepoint: a payment that left PENDING meanwhile is skipped, one whose
      UPDATE fails is logged and left PENDING without undoing the others
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from bookstore.config import get_settings
from bookstore.core.domain_types import (
    GatewayOutcome,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Principal,
    TransactionId,
)
from bookstore.core.enforce_access import require_admin, require_owner_or_admin
from bookstore.core.enforce_order import should_mark_paid
from bookstore.core.enforce_payment import (
    GatewayAction,
    check_payment_creatable,
    check_payment_pending,
    compute_refund,
    evaluate_gateway_outcome,
    expiry_cutoff,
)
from bookstore.core.errors import (
    ConcurrencyError,
    DuplicatePaymentError,
    ErrorContext,
    ResourceNotFoundError,
)
from bookstore.core.payment_gateway import (
    MANUAL_CONFIRMATION_RESPONSE,
    gateway_for,
    generate_transaction_id,
)
from bookstore.models.order import Order
from bookstore.models.payment import Payment
from bookstore.schemas.payment import RefundRequest
from bookstore.services.order_workflow import load_order

logger = logging.getLogger(__name__)


class PaymentProcessor:
    """Creates payments, applies gateway outcomes, confirms, cancels, refunds, expires."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Creation ────────────────────────────────────────────────

    async def create_payment(
        self, order_id: UUID, method: PaymentMethod, principal: Principal,
    ) -> Payment:
        order = await load_order(self.db, order_id)
        require_owner_or_admin(
            principal, order.user_id, "create payment",
            ErrorContext(order_id=str(order_id)),
        )
        existing = await self.db.scalar(
            select(Payment.id).where(Payment.order_id == order.id),
        )
        check_payment_creatable(order.status, existing is not None, str(order.id))

        payment = Payment(
            order_id=order.id,
            method=method,
            amount=order.total_price,
            status=PaymentStatus.PENDING,
            transaction_id=generate_transaction_id(int(time.time() * 1000)),
            gateway=gateway_for(method),
        )
        self.db.add(payment)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent create for the same order
            await self.db.rollback()
            raise DuplicatePaymentError(str(order.id))

        logger.info(
            f"Payment created via {payment.gateway}",
            extra={
                "order_id": order.id, "payment_id": payment.id,
                "transaction_id": payment.transaction_id,
            },
        )
        return payment

    # ─── Outcomes ────────────────────────────────────────────────

    async def apply_gateway_outcome(
        self,
        transaction_id: TransactionId,
        outcome: GatewayOutcome,
        raw_response: str | None = None,
    ) -> Payment:
        """Apply an asynchronous gateway notification. Safe to redeliver."""
        payment = await self._load_by_transaction(transaction_id)
        action = evaluate_gateway_outcome(payment.status, outcome, transaction_id)
        if action == GatewayAction.NOOP:
            logger.info(
                f"Duplicate gateway outcome {outcome.value} ignored",
                extra={"transaction_id": transaction_id, "payment_id": payment.id},
            )
            await self.db.commit()
            return payment

        payment.gateway_response = raw_response
        if outcome == GatewayOutcome.SUCCESS:
            await self._mark_succeeded(payment)
        else:
            payment.status = PaymentStatus.FAILED
            logger.warning(
                "Payment failed at gateway",
                extra={"transaction_id": transaction_id, "payment_id": payment.id},
            )
        await self.db.commit()
        return payment

    async def confirm_payment(self, payment_id: UUID, principal: Principal) -> Payment:
        """Admin override: same effect as a SUCCESS gateway outcome."""
        require_admin(principal, "confirm payment")
        payment = await self._load(payment_id, for_update=True)
        check_payment_pending(payment.status, "confirm payment", str(payment.id))

        payment.gateway_response = MANUAL_CONFIRMATION_RESPONSE
        await self._mark_succeeded(payment)
        await self.db.commit()
        return payment

    async def cancel_payment(self, payment_id: UUID, principal: Principal) -> Payment:
        payment = await self._load(payment_id, for_update=True)
        await self._require_payment_access(payment, principal, "cancel payment")
        check_payment_pending(payment.status, "cancel payment", str(payment.id))

        payment.status = PaymentStatus.CANCELLED
        await self.db.commit()
        logger.info(
            "Payment cancelled",
            extra={"payment_id": payment.id, "user_id": principal.user_id},
        )
        return payment

    # ─── Refunds ─────────────────────────────────────────────────

    async def refund(
        self,
        payment_id: UUID,
        amount: Decimal,
        reason: str | None,
        admin_note: str | None,
        principal: Principal,
    ) -> Payment:
        require_admin(principal, "refund payment")
        payment = await self._load(payment_id, for_update=True)
        result = compute_refund(
            payment.status, payment.amount, payment.refund_amount,
            amount, str(payment.id),
        )

        try:
            payment.refund_amount = result.refund_amount
            payment.refund_reason = reason
            payment.admin_note = admin_note
            payment.refunded_at = datetime.now(timezone.utc)
            payment.status = result.status
            if result.fully_refunded:
                # Stock is not restored on this path
                order = await load_order(self.db, payment.order_id, for_update=True)
                if order.status != OrderStatus.CANCELLED:
                    order.status = OrderStatus.CANCELLED
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            raise ConcurrencyError(
                "Payment was modified concurrently, retry the refund",
                ErrorContext(payment_id=str(payment_id)),
            )

        logger.info(
            f"Refunded {amount}, cumulative {result.refund_amount} of {payment.amount}",
            extra={
                "payment_id": payment.id, "order_id": payment.order_id,
                "status": result.status.value,
            },
        )
        return payment

    async def request_refund(
        self, request: RefundRequest, principal: Principal,
    ) -> Payment:
        """Refund driven by a request object (payment id, amount, reason, note)."""
        return await self.refund(
            request.payment_id,
            request.refund_amount,
            request.refund_reason,
            request.admin_note,
            principal,
        )

    # ─── Expiry ──────────────────────────────────────────────────

    async def cleanup_expired_payments(
        self,
        ttl: timedelta | None = None,
        now: datetime | None = None,
        principal: Principal | None = None,
    ) -> int:
        """Cancel PENDING payments older than ttl. Returns how many were cancelled.

        The background sweeper runs without a principal; an API caller must be admin.
        """
        if principal is not None:
            require_admin(principal, "clean up expired payments")
        ttl = ttl or timedelta(hours=get_settings().payment_expiry_hours)
        cutoff = expiry_cutoff(now or datetime.now(timezone.utc), ttl)
        candidates = await self.db.execute(
            select(Payment.id, Payment.transaction_id)
            .where(Payment.status == PaymentStatus.PENDING)
            .where(Payment.created_at < cutoff),
        )

        cancelled = 0
        for payment_id, transaction_id in candidates.all():
            try:
                async with self.db.begin_nested():
                    result = await self.db.execute(
                        update(Payment)
                        .where(Payment.id == payment_id)
                        .where(Payment.status == PaymentStatus.PENDING)
                        .values(
                            status=PaymentStatus.CANCELLED,
                            version=Payment.version + 1,
                        )
                        .execution_options(synchronize_session=False),
                    )
            except SQLAlchemyError as e:
                logger.error(
                    f"Expiry of payment failed, left for the next sweep: {e}",
                    extra={"payment_id": payment_id, "transaction_id": transaction_id},
                )
                continue
            if result.rowcount == 1:
                cancelled += 1
                logger.info(
                    "Expired payment cancelled",
                    extra={"payment_id": payment_id, "transaction_id": transaction_id},
                )
            else:
                logger.info(
                    "Expired payment left PENDING before cleanup, skipped",
                    extra={"payment_id": payment_id, "transaction_id": transaction_id},
                )
        await self.db.commit()
        return cancelled

    # ─── Reads ───────────────────────────────────────────────────

    async def get_payment(self, payment_id: UUID, principal: Principal) -> Payment:
        payment = await self._load(payment_id)
        await self._require_payment_access(payment, principal, "view payment")
        return payment

    async def get_payment_by_order(
        self, order_id: UUID, principal: Principal,
    ) -> Payment:
        payment = await self.db.scalar(
            select(Payment).where(Payment.order_id == order_id),
        )
        if not payment:
            raise ResourceNotFoundError(
                "Payment for order", str(order_id),
                ErrorContext(order_id=str(order_id)),
            )
        await self._require_payment_access(payment, principal, "view payment")
        return payment

    async def list_payments(
        self,
        principal: Principal,
        status: PaymentStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Payment]:
        query = select(Payment).order_by(Payment.created_at.desc())
        if not principal.is_admin:
            query = query.join(Order, Order.id == Payment.order_id).where(
                Order.user_id == principal.user_id,
            )
        if status:
            query = query.where(Payment.status == status)
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    # ─── Helpers ─────────────────────────────────────────────────

    async def _load(self, payment_id: UUID, for_update: bool = False) -> Payment:
        query = select(Payment).where(Payment.id == payment_id)
        if for_update:
            query = query.with_for_update()
        payment = await self.db.scalar(
            query.execution_options(populate_existing=True),
        )
        if not payment:
            raise ResourceNotFoundError(
                "Payment", str(payment_id), ErrorContext(payment_id=str(payment_id)),
            )
        return payment

    async def _load_by_transaction(self, transaction_id: TransactionId) -> Payment:
        payment = await self.db.scalar(
            select(Payment)
            .where(Payment.transaction_id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        if not payment:
            raise ResourceNotFoundError(
                "Payment", transaction_id,
                ErrorContext(transaction_id=transaction_id),
            )
        return payment

    async def _require_payment_access(
        self, payment: Payment, principal: Principal, action: str,
    ) -> None:
        owner_id = await self.db.scalar(
            select(Order.user_id).where(Order.id == payment.order_id),
        )
        require_owner_or_admin(
            principal, owner_id, action, ErrorContext(payment_id=str(payment.id)),
        )

    async def _mark_succeeded(self, payment: Payment) -> None:
        payment.status = PaymentStatus.SUCCESS
        payment.paid_at = datetime.now(timezone.utc)
        order = await load_order(self.db, payment.order_id, for_update=True)
        if should_mark_paid(order.status):
            order.status = OrderStatus.PAID
        else:
            logger.warning(
                f"Payment succeeded but order is {order.status.value}, order left as is",
                extra={"order_id": order.id, "payment_id": payment.id},
            )
        logger.info(
            "Payment succeeded",
            extra={
                "payment_id": payment.id, "order_id": payment.order_id,
                "transaction_id": payment.transaction_id,
            },
        )
