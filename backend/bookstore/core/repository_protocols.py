"""Boundary Protocols — collaborator contracts consumed by the order/payment core.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Catalog and user lookups accessed through Protocol types
    - Implementations provided by shell (services/book_catalog.py, services/user_directory.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, tests can pass plain fakes
    - Async in Protocol: implementations do IO, the pure rules that use their
      results are never async themselves
"""

from decimal import Decimal
from typing import Protocol

from bookstore.core.domain_types import BookId, Principal, UserId


class BookCatalog(Protocol):
    """Price/stock reads and stock mutation over the book catalog."""
    async def get_price(self, book_id: BookId) -> Decimal: ...
    async def get_stock(self, book_id: BookId) -> int: ...
    async def mutate_stock(self, book_id: BookId, delta: int) -> bool: ...


class UserDirectory(Protocol):
    """Resolves an authenticated user id to a Principal (id + role)."""
    async def resolve(self, user_id: UserId) -> Principal | None: ...
