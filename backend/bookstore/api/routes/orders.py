"""Order Routes — order lifecycle and cancel-request arbitration endpoints.

Invariants:
    - Every route resolves an explicit Principal (X-User-Id) before touching a service
    - Routes never contain business logic (delegate to OrderWorkflow / CancellationArbitration)
    - Domain errors propagate to the global BookstoreError handler

Design Decisions:
    - Admin routes live under /orders/admin/... so they never collide with /orders/{order_id}
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.api.dependencies import get_principal
from bookstore.core.domain_types import OrderStatus, Principal
from bookstore.infrastructure.database import get_db
from bookstore.schemas.order import (
    CancelOrderRequest,
    CancelRequestResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    ResolveCancelRequest,
    to_order_response,
)
from bookstore.services.cancellation_arbitration import CancellationArbitration
from bookstore.services.order_workflow import OrderWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post(
    "", response_model=OrderResponse, status_code=status.HTTP_201_CREATED,
)
async def create_order(
    body: OrderCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Create an order, reserving stock for every line."""
    order = await OrderWorkflow(db).create_order(principal, body.as_pairs())
    return to_order_response(order)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: OrderStatus | None = Query(None, alias="status"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    orders = await OrderWorkflow(db).list_orders(
        principal, status_filter, limit, offset,
    )
    return [to_order_response(order) for order in orders]


@router.get(
    "/admin/cancel-requests", response_model=list[CancelRequestResponse],
)
async def list_cancel_requests(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Pending cancel requests awaiting an admin decision."""
    requests = await CancellationArbitration(db).list_pending(principal, limit, offset)
    return [CancelRequestResponse.model_validate(r) for r in requests]


@router.put(
    "/admin/{order_id}/cancel-request", response_model=CancelRequestResponse,
)
async def resolve_cancel_request(
    order_id: UUID,
    body: ResolveCancelRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    request = await CancellationArbitration(db).resolve(
        order_id, body.approved, body.admin_note, principal,
    )
    return CancelRequestResponse.model_validate(request)


@router.put("/admin/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    body: OrderStatusUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Admin override of the order status (CANCELLED orders excepted)."""
    order = await OrderWorkflow(db).update_order_status(
        order_id, body.status, principal,
    )
    return to_order_response(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderWorkflow(db).get_order(order_id, principal)
    cancel_request = await CancellationArbitration(db).get_for_order(order.id)
    return to_order_response(order, cancel_request)


@router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderWorkflow(db).cancel_order(order_id, principal)
    return to_order_response(order)


@router.post(
    "/{order_id}/cancel-request",
    response_model=CancelRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_cancellation(
    order_id: UUID,
    body: CancelOrderRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Ask an admin to cancel a shipped order."""
    request = await CancellationArbitration(db).request_cancellation(
        order_id, body.reason, principal,
    )
    return CancelRequestResponse.model_validate(request)
