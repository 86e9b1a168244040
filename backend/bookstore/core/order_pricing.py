"""Order Pricing — price snapshots and order totals.

Invariants:
    - total == sum(price_at_purchase * quantity) over all lines
    - Quantities are positive integers; an order has at least one line
    - Prices are snapshotted once; later catalog changes never reach an existing order

Design Decisions:
    - Decimal arithmetic end to end, quantized to cents (Numeric(10, 2))
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from bookstore.core.domain_types import ZERO, to_money
from bookstore.core.errors import ValidationError


@dataclass(frozen=True)
class PricedLine:
    book_id: UUID
    quantity: int
    price_at_purchase: Decimal

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.price_at_purchase * self.quantity)


def validate_requested_lines(lines: list[tuple[UUID, int]]) -> None:
    if not lines:
        raise ValidationError("Order items cannot be empty", "lines")
    for book_id, quantity in lines:
        if quantity <= 0:
            raise ValidationError(
                f"Quantity for book '{book_id}' must be positive", "quantity",
            )


def compute_total(lines: list[PricedLine]) -> Decimal:
    return to_money(sum((line.subtotal for line in lines), ZERO))
