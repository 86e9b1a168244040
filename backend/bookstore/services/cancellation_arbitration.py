"""Cancellation Arbitration — user-requested, admin-resolved cancellation of shipped orders.

Invariants:
    - Only the order owner may request, only while the order is SHIPPED
    - At most one CancelRequest per order, ever (service check + UNIQUE constraint)
    - Resolution happens once: PENDING -> APPROVED | REJECTED, processed_at always set
    - Approval restores stock for every line and cancels the order; rejection leaves
      the order SHIPPED
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.domain_types import CancelRequestStatus, OrderStatus, Principal
from bookstore.core.enforce_access import require_admin, require_owner
from bookstore.core.enforce_order import (
    check_cancel_request_allowed,
    check_cancel_request_pending,
    check_order_not_terminal,
)
from bookstore.core.errors import (
    DuplicateRequestError,
    ErrorContext,
    ResourceNotFoundError,
)
from bookstore.models.cancel_request import CancelRequest
from bookstore.services.book_catalog import SqlBookCatalog
from bookstore.services.inventory_ledger import InventoryLedger
from bookstore.services.order_workflow import load_order, reserved_lines

logger = logging.getLogger(__name__)


async def find_cancel_request(
    db: AsyncSession, order_id: UUID, for_update: bool = False,
) -> CancelRequest | None:
    query = select(CancelRequest).where(CancelRequest.order_id == order_id)
    if for_update:
        query = query.with_for_update()
    return await db.scalar(query.execution_options(populate_existing=True))


class CancellationArbitration:
    """Request and resolve cancellation of orders past direct cancellation."""

    def __init__(self, db: AsyncSession, ledger: InventoryLedger | None = None):
        self.db = db
        self.ledger = ledger or InventoryLedger(SqlBookCatalog(db))

    async def request_cancellation(
        self, order_id: UUID, reason: str, principal: Principal,
    ) -> CancelRequest:
        order = await load_order(self.db, order_id)
        require_owner(
            principal, order.user_id, "request cancellation",
            ErrorContext(order_id=str(order_id)),
        )
        existing = await find_cancel_request(self.db, order.id)
        check_cancel_request_allowed(order.status, existing is not None, str(order.id))

        request = CancelRequest(
            order_id=order.id,
            reason=reason,
            status=CancelRequestStatus.PENDING,
        )
        self.db.add(request)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateRequestError(str(order.id))

        logger.info(
            "Cancellation requested for shipped order",
            extra={"order_id": order.id, "user_id": principal.user_id},
        )
        return request

    async def resolve(
        self,
        order_id: UUID,
        approved: bool,
        admin_note: str | None,
        principal: Principal,
    ) -> CancelRequest:
        require_admin(principal, "resolve cancel request")
        request = await find_cancel_request(self.db, order_id, for_update=True)
        if not request:
            raise ResourceNotFoundError(
                "Cancel request for order", str(order_id),
                ErrorContext(order_id=str(order_id)),
            )
        check_cancel_request_pending(request.status, str(order_id))

        if approved:
            order = await load_order(self.db, order_id, for_update=True)
            check_order_not_terminal(
                order.status, str(order.id), "approve cancel request",
            )
            await self.ledger.restore_lines(reserved_lines(order))
            order.status = OrderStatus.CANCELLED

        request.status = (
            CancelRequestStatus.APPROVED if approved else CancelRequestStatus.REJECTED
        )
        request.admin_note = admin_note
        request.processed_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info(
            f"Cancel request {request.status.value}",
            extra={"order_id": order_id, "user_id": principal.user_id},
        )
        return request

    async def get_for_order(self, order_id: UUID) -> CancelRequest | None:
        return await find_cancel_request(self.db, order_id)

    async def list_pending(
        self, principal: Principal, limit: int = 10, offset: int = 0,
    ) -> list[CancelRequest]:
        require_admin(principal, "list cancel requests")
        result = await self.db.execute(
            select(CancelRequest)
            .where(CancelRequest.status == CancelRequestStatus.PENDING)
            .order_by(CancelRequest.created_at.desc())
            .limit(limit)
            .offset(offset),
        )
        return list(result.scalars().all())
