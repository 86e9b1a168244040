"""Order Schemas — Pydantic models for order and cancel-request endpoints.

Invariants:
    - OrderCreate.lines: at least one line, every quantity >= 1
    - CancelOrderRequest.reason: 1-1000 chars, stripped, non-empty
    - Responses built from ORM objects via from_attributes

Design Decisions:
    - Line subtotal computed in the response, not stored (derivable from the snapshot)
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from bookstore.core.domain_types import CancelRequestStatus, OrderStatus, to_money


class OrderLineRequest(BaseModel):
    book_id: UUID
    quantity: int = Field(ge=1, le=1000)


class OrderCreate(BaseModel):
    """Order creation — one entry per requested book."""
    lines: list[OrderLineRequest] = Field(min_length=1, max_length=100)

    def as_pairs(self) -> list[tuple[UUID, int]]:
        return [(line.book_id, line.quantity) for line in self.lines]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("reason cannot be empty or whitespace")
        return v


class ResolveCancelRequest(BaseModel):
    approved: bool
    admin_note: str | None = Field(None, max_length=1000)


class OrderLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    book_id: UUID
    quantity: int
    price_at_purchase: Decimal

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return to_money(self.price_at_purchase * self.quantity)


class CancelRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    reason: str
    status: CancelRequestStatus
    admin_note: str | None = None
    created_at: datetime
    processed_at: datetime | None = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    status: OrderStatus
    total_price: Decimal
    created_at: datetime
    lines: list[OrderLineResponse]
    cancel_request: CancelRequestResponse | None = None


def to_order_response(order, cancel_request=None) -> OrderResponse:
    """Assemble an order response; the cancel request is loaded separately by id."""
    response = OrderResponse.model_validate(order)
    if cancel_request is not None:
        response.cancel_request = CancelRequestResponse.model_validate(cancel_request)
    return response
