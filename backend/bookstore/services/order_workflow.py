"""Order Workflow — order state machine with stock reservation and restoration.

Invariants:
    - create_order is all-or-nothing: prices, reservations and the order insert share one
      transaction; any failure rolls back every reservation and persists nothing
    - total_price and each line's price_at_purchase are fixed at creation
    - cancel_order restores exactly the reserved quantities, only from PENDING/PAID
    - CANCELLED is terminal
    - Every operation takes an explicit Principal

Design Decisions:
    - Order row locked (SELECT ... FOR UPDATE) before any transition so two concurrent
      cancels cannot both restore stock (PostgreSQL; SQLite serializes writers anyway)
    - update_order_status is the admin escape hatch (PAID -> SHIPPED); it skips the
      transition table but still refuses to leave CANCELLED
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.domain_types import BookId, OrderStatus, Principal
from bookstore.core.enforce_access import require_admin, require_owner_or_admin
from bookstore.core.enforce_order import (
    check_order_cancellable,
    check_order_not_terminal,
)
from bookstore.core.errors import BookstoreError, ErrorContext, ResourceNotFoundError
from bookstore.core.order_pricing import (
    PricedLine,
    compute_total,
    validate_requested_lines,
)
from bookstore.core.repository_protocols import BookCatalog
from bookstore.models.order import Order
from bookstore.models.order_line import OrderLine
from bookstore.services.book_catalog import SqlBookCatalog
from bookstore.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


async def load_order(
    db: AsyncSession, order_id: UUID, for_update: bool = False,
) -> Order:
    """Load an order with its lines or raise ResourceNotFoundError."""
    query = select(Order).where(Order.id == order_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(
        query.execution_options(populate_existing=True),
    )
    order = result.scalar_one_or_none()
    if not order:
        raise ResourceNotFoundError(
            "Order", str(order_id), ErrorContext(order_id=str(order_id)),
        )
    return order


def reserved_lines(order: Order) -> list[tuple[BookId, int]]:
    return [(BookId(line.book_id), line.quantity) for line in order.lines]


class OrderWorkflow:
    """Create, read, cancel and administratively advance orders."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: BookCatalog | None = None,
        ledger: InventoryLedger | None = None,
    ):
        self.db = db
        self.catalog = catalog or SqlBookCatalog(db)
        self.ledger = ledger or InventoryLedger(self.catalog)

    async def create_order(
        self, principal: Principal, lines: list[tuple[UUID, int]],
    ) -> Order:
        validate_requested_lines(lines)
        try:
            priced = [
                PricedLine(
                    book_id=book_id,
                    quantity=quantity,
                    price_at_purchase=await self.catalog.get_price(BookId(book_id)),
                )
                for book_id, quantity in lines
            ]
            await self.ledger.reserve_lines(
                (BookId(line.book_id), line.quantity) for line in priced
            )
            order = Order(
                user_id=principal.user_id,
                status=OrderStatus.PENDING,
                total_price=compute_total(priced),
                lines=[
                    OrderLine(
                        book_id=line.book_id,
                        position=position,
                        quantity=line.quantity,
                        price_at_purchase=line.price_at_purchase,
                    )
                    for position, line in enumerate(priced)
                ],
            )
            self.db.add(order)
            await self.db.commit()
        except BookstoreError:
            await self.db.rollback()
            raise

        logger.info(
            f"Order created with {len(order.lines)} line(s), total {order.total_price}",
            extra={"order_id": order.id, "user_id": principal.user_id},
        )
        return order

    async def get_order(self, order_id: UUID, principal: Principal) -> Order:
        order = await load_order(self.db, order_id)
        require_owner_or_admin(
            principal, order.user_id, "view order",
            ErrorContext(order_id=str(order_id)),
        )
        return order

    async def list_orders(
        self,
        principal: Principal,
        status: OrderStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Order]:
        """Own orders for users, every order for admins. Newest first."""
        query = select(Order).order_by(Order.created_at.desc())
        if not principal.is_admin:
            query = query.where(Order.user_id == principal.user_id)
        if status:
            query = query.where(Order.status == status)
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def cancel_order(self, order_id: UUID, principal: Principal) -> Order:
        order = await load_order(self.db, order_id, for_update=True)
        require_owner_or_admin(
            principal, order.user_id, "cancel order",
            ErrorContext(order_id=str(order_id)),
        )
        check_order_cancellable(order.status, str(order.id))

        previous = order.status
        await self.ledger.restore_lines(reserved_lines(order))
        order.status = OrderStatus.CANCELLED
        await self.db.commit()

        logger.info(
            f"Order cancelled from {previous.value}, stock restored",
            extra={"order_id": order.id, "user_id": principal.user_id},
        )
        return order

    async def update_order_status(
        self, order_id: UUID, new_status: OrderStatus, principal: Principal,
    ) -> Order:
        require_admin(principal, "set order status")
        order = await load_order(self.db, order_id, for_update=True)
        check_order_not_terminal(order.status, str(order.id), "change status")

        previous = order.status
        order.status = new_status
        await self.db.commit()

        logger.info(
            f"Order status set {previous.value} -> {new_status.value} by admin",
            extra={"order_id": order.id, "user_id": principal.user_id},
        )
        return order
