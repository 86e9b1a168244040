"""Order Workflow — creation with reservation, cancellation with restoration.

Invariants:
    - create_order snapshots prices and reserves stock for every line
    - A failed line rolls back every earlier reservation, nothing is persisted
    - cancel_order restores stock from PENDING/PAID only; CANCELLED is terminal
    - Owner-or-admin access; admin-only status override
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select, update

from bookstore.core.domain_types import OrderStatus
from bookstore.core.errors import (
    AccessDeniedError,
    InsufficientStockError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.services.order_workflow import OrderWorkflow


async def test_create_order_reserves_and_prices(test_db, users, books, stock_of):
    order = await OrderWorkflow(test_db).create_order(
        users.alice, [(books.dune, 3), (books.sicp, 1)],
    )
    assert order.status == OrderStatus.PENDING
    assert order.user_id == users.alice.user_id
    assert order.total_price == Decimal("87.50")
    assert [(line.book_id, line.quantity) for line in order.lines] == [
        (books.dune, 3), (books.sicp, 1),
    ]
    assert order.lines[0].price_at_purchase == Decimal("12.50")
    assert await stock_of(books.dune) == 2
    assert await stock_of(books.sicp) == 9


async def test_second_order_exceeding_remaining_stock_fails(test_db, users, books, stock_of):
    workflow = OrderWorkflow(test_db)
    await workflow.create_order(users.alice, [(books.dune, 3)])

    with pytest.raises(InsufficientStockError):
        await workflow.create_order(users.bob, [(books.dune, 3)])

    assert await stock_of(books.dune) == 2
    count = await test_db.scalar(select(func.count(Order.id)))
    assert count == 1


async def test_failed_line_rolls_back_earlier_reservations(test_db, users, books, stock_of):
    with pytest.raises(InsufficientStockError):
        await OrderWorkflow(test_db).create_order(
            users.alice, [(books.sicp, 2), (books.rare, 2)],
        )
    assert await stock_of(books.sicp) == 10
    assert await stock_of(books.rare) == 1
    assert await test_db.scalar(select(func.count(Order.id))) == 0


async def test_unknown_book_rejects_order(test_db, users, books, stock_of):
    with pytest.raises(ResourceNotFoundError):
        await OrderWorkflow(test_db).create_order(
            users.alice, [(books.dune, 1), (uuid4(), 1)],
        )
    assert await stock_of(books.dune) == 5


async def test_empty_order_rejected(test_db, users):
    with pytest.raises(ValidationError):
        await OrderWorkflow(test_db).create_order(users.alice, [])


async def test_price_snapshot_survives_catalog_change(test_db, users, books):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    order_id = order.id

    await test_db.execute(
        update(Book).where(Book.id == books.dune).values(price=Decimal("99.00")),
    )
    await test_db.commit()

    reloaded = await workflow.get_order(order_id, users.alice)
    assert reloaded.total_price == Decimal("12.50")
    assert reloaded.lines[0].price_at_purchase == Decimal("12.50")


async def test_get_order_access(test_db, users, books):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    order_id = order.id

    assert (await workflow.get_order(order_id, users.admin)).id == order_id
    with pytest.raises(AccessDeniedError):
        await workflow.get_order(order_id, users.bob)
    with pytest.raises(ResourceNotFoundError):
        await workflow.get_order(uuid4(), users.alice)


async def test_list_orders_scoped_to_owner(test_db, users, books):
    workflow = OrderWorkflow(test_db)
    await workflow.create_order(users.alice, [(books.dune, 1)])
    await workflow.create_order(users.alice, [(books.sicp, 1)])
    await workflow.create_order(users.bob, [(books.sicp, 1)])

    assert len(await workflow.list_orders(users.alice)) == 2
    assert len(await workflow.list_orders(users.bob)) == 1
    assert len(await workflow.list_orders(users.admin)) == 3
    assert len(await workflow.list_orders(users.admin, limit=2)) == 2
    assert await workflow.list_orders(users.alice, status=OrderStatus.PAID) == []


async def test_cancel_pending_order_restores_stock(test_db, users, books, stock_of):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 3), (books.sicp, 2)])

    cancelled = await workflow.cancel_order(order.id, users.alice)

    assert cancelled.status == OrderStatus.CANCELLED
    assert await stock_of(books.dune) == 5
    assert await stock_of(books.sicp) == 10


async def test_cancel_paid_order_by_admin(test_db, users, books, stock_of, order_status_of):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 2)])
    order_id = order.id
    await workflow.update_order_status(order_id, OrderStatus.PAID, users.admin)

    await workflow.cancel_order(order_id, users.admin)

    assert await order_status_of(order_id) == OrderStatus.CANCELLED
    assert await stock_of(books.dune) == 5


async def test_cancel_twice_restores_once(test_db, users, books, stock_of):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 3)])
    order_id = order.id
    await workflow.cancel_order(order_id, users.alice)

    with pytest.raises(InvalidStateTransitionError):
        await workflow.cancel_order(order_id, users.alice)
    assert await stock_of(books.dune) == 5


async def test_cancel_shipped_order_refused(test_db, users, books, stock_of):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    order_id = order.id
    await workflow.update_order_status(order_id, OrderStatus.SHIPPED, users.admin)

    with pytest.raises(InvalidStateTransitionError):
        await workflow.cancel_order(order_id, users.alice)
    assert await stock_of(books.dune) == 4


async def test_cancel_by_other_user_denied(test_db, users, books):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    with pytest.raises(AccessDeniedError):
        await workflow.cancel_order(order.id, users.bob)


async def test_status_override_is_admin_only(test_db, users, books):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    with pytest.raises(AccessDeniedError):
        await workflow.update_order_status(order.id, OrderStatus.SHIPPED, users.alice)


async def test_status_override_skips_transition_table(test_db, users, books, order_status_of):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    order_id = order.id

    await workflow.update_order_status(order_id, OrderStatus.SHIPPED, users.admin)
    await workflow.update_order_status(order_id, OrderStatus.PENDING, users.admin)
    assert await order_status_of(order_id) == OrderStatus.PENDING


async def test_status_override_cannot_leave_cancelled(test_db, users, books, order_status_of):
    workflow = OrderWorkflow(test_db)
    order = await workflow.create_order(users.alice, [(books.dune, 1)])
    order_id = order.id
    await workflow.cancel_order(order_id, users.alice)

    with pytest.raises(InvalidStateTransitionError):
        await workflow.update_order_status(order_id, OrderStatus.PAID, users.admin)
    assert await order_status_of(order_id) == OrderStatus.CANCELLED
