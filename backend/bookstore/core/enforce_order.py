"""Order State Enforcement — legal source states for order and cancel-request operations.

Invariants:
    - Direct cancellation only from PENDING or PAID
    - Cancel requests only while SHIPPED, at most one per order
    - CANCELLED is terminal: no operation may move an order out of it
    - Pure: each guard raises a typed error or returns None, never mutates

Design Decisions:
    - The admin status-set escape hatch stays unchecked for every source state except
      CANCELLED (ADR: PAID -> SHIPPED has no dedicated operation, fulfillment is external)
"""

from bookstore.core.domain_types import CancelRequestStatus, OrderStatus
from bookstore.core.errors import (
    DuplicateRequestError,
    ErrorContext,
    InvalidStateTransitionError,
)


CANCELLABLE_ORDER_STATES: frozenset[OrderStatus] = frozenset({
    OrderStatus.PENDING, OrderStatus.PAID,
})
TERMINAL_ORDER_STATES: frozenset[OrderStatus] = frozenset({
    OrderStatus.CANCELLED,
})


def check_order_cancellable(status: OrderStatus, order_id: str) -> None:
    """Direct cancel: PENDING or PAID only. SHIPPED goes through a cancel request."""
    if status not in CANCELLABLE_ORDER_STATES:
        raise InvalidStateTransitionError(
            "order", status.value, "cancel order",
            ErrorContext(order_id=order_id),
        )


def check_order_not_terminal(
    current: OrderStatus, order_id: str, operation: str,
) -> None:
    """Admin status override and cancel approval: anything goes unless terminal."""
    if current in TERMINAL_ORDER_STATES:
        raise InvalidStateTransitionError(
            "order", current.value, operation,
            ErrorContext(order_id=order_id),
        )


def check_cancel_request_allowed(
    status: OrderStatus, has_existing_request: bool, order_id: str,
) -> None:
    if status != OrderStatus.SHIPPED:
        raise InvalidStateTransitionError(
            "order", status.value, "request cancellation",
            ErrorContext(order_id=order_id),
        )
    if has_existing_request:
        raise DuplicateRequestError(order_id)


def check_cancel_request_pending(
    status: CancelRequestStatus, order_id: str,
) -> None:
    if status != CancelRequestStatus.PENDING:
        raise InvalidStateTransitionError(
            "cancel request", status.value, "resolve cancel request",
            ErrorContext(order_id=order_id),
        )


def should_mark_paid(status: OrderStatus) -> bool:
    """Payment success cascades to PAID only from PENDING."""
    return status == OrderStatus.PENDING
