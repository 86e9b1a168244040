"""Inventory Ledger — the only writer of book stock during order and cancellation flows.

Invariants:
    - reserve never drives stock negative: failure leaves stock untouched
    - restore adds back exactly the quantity given
    - Never commits: reservations ride the caller's transaction, so a failed
      order rolls every earlier reservation back with it
    - Idempotency of restore is the caller's job (callers restore only on a
      one-way transition into CANCELLED)
    - Multi-line reservations and restorations touch books in ascending book id
      order, so two orders over the same books lock rows in the same sequence
"""

import logging
from typing import Iterable

from bookstore.core.domain_types import BookId
from bookstore.core.errors import InsufficientStockError
from bookstore.core.repository_protocols import BookCatalog

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Atomic stock reservation and restoration keyed by book id."""

    def __init__(self, catalog: BookCatalog):
        self.catalog = catalog

    async def reserve(self, book_id: BookId, quantity: int) -> None:
        if await self.catalog.mutate_stock(book_id, -quantity):
            logger.debug(
                f"Reserved {quantity} of book {book_id}", extra={"book_id": book_id},
            )
            return
        # Either the book is missing (get_stock raises NotFound) or stock is short
        available = await self.catalog.get_stock(book_id)
        logger.info(
            f"Reservation of {quantity} rejected, {available} available",
            extra={"book_id": book_id},
        )
        raise InsufficientStockError(str(book_id), quantity, available)

    async def restore(self, book_id: BookId, quantity: int) -> None:
        if not await self.catalog.mutate_stock(book_id, quantity):
            await self.catalog.get_stock(book_id)
        logger.debug(
            f"Restored {quantity} of book {book_id}", extra={"book_id": book_id},
        )

    async def reserve_lines(self, lines: Iterable[tuple[BookId, int]]) -> None:
        for book_id, quantity in in_lock_order(lines):
            await self.reserve(book_id, quantity)

    async def restore_lines(self, lines: Iterable[tuple[BookId, int]]) -> None:
        for book_id, quantity in in_lock_order(lines):
            await self.restore(book_id, quantity)


def in_lock_order(
    lines: Iterable[tuple[BookId, int]],
) -> list[tuple[BookId, int]]:
    """Lines sorted by book id; stable, so repeated books keep their relative order."""
    return sorted(lines, key=lambda line: str(line[0]))
