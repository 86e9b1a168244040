"""Order Pricing — line validation and total computation.

Tests:
    - Empty line list and non-positive quantities rejected
    - Line subtotal and order total in exact cents
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from bookstore.core.errors import ValidationError
from bookstore.core.order_pricing import (
    PricedLine, compute_total, validate_requested_lines,
)


def test_empty_order_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_requested_lines([])
    assert exc.value.field == "lines"


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity_rejected(quantity):
    with pytest.raises(ValidationError) as exc:
        validate_requested_lines([(uuid4(), 1), (uuid4(), quantity)])
    assert exc.value.field == "quantity"


def test_valid_lines_pass():
    validate_requested_lines([(uuid4(), 1), (uuid4(), 3)])


def test_total_is_sum_of_subtotals():
    lines = [
        PricedLine(uuid4(), 3, Decimal("12.50")),
        PricedLine(uuid4(), 1, Decimal("0.10")),
        PricedLine(uuid4(), 2, Decimal("0.20")),
    ]
    assert lines[0].subtotal == Decimal("37.50")
    assert compute_total(lines) == Decimal("38.00")


def test_total_of_no_lines_is_zero():
    assert compute_total([]) == Decimal("0.00")
