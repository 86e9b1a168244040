"""Book Catalog — SQLAlchemy implementation of the BookCatalog protocol.

Invariants:
    - mutate_stock is a single conditional UPDATE: stock never goes below zero,
      concurrent mutations on the same row are serialized by the database
    - Unknown books raise ResourceNotFoundError from reads
    - Never commits: the caller owns the transaction

Design Decisions:
    - Compare-and-decrement in SQL over read-check-write in Python
      (ADR: no window between the stock check and the write)
"""

import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.domain_types import BookId
from bookstore.core.errors import ErrorContext, ResourceNotFoundError
from bookstore.models.book import Book

logger = logging.getLogger(__name__)


class SqlBookCatalog:
    """Reads price/stock and applies stock deltas against the books table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_price(self, book_id: BookId) -> Decimal:
        price = await self.db.scalar(select(Book.price).where(Book.id == book_id))
        if price is None:
            raise _book_not_found(book_id)
        return price

    async def get_stock(self, book_id: BookId) -> int:
        stock = await self.db.scalar(select(Book.stock).where(Book.id == book_id))
        if stock is None:
            raise _book_not_found(book_id)
        return stock

    async def mutate_stock(self, book_id: BookId, delta: int) -> bool:
        """Apply delta atomically. False if the row is missing or would go negative."""
        stmt = (
            update(Book)
            .where(Book.id == book_id)
            .values(stock=Book.stock + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(Book.stock >= -delta)
        result = await self.db.execute(stmt)
        return result.rowcount == 1


def _book_not_found(book_id: BookId) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Book", str(book_id), ErrorContext(book_id=str(book_id)),
    )
