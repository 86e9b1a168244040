"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Order is the aggregate root for its lines; Payment and CancelRequest reference it by id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from bookstore.models.user import User  # noqa: F401
from bookstore.models.book import Book  # noqa: F401
from bookstore.models.order import Order  # noqa: F401
from bookstore.models.order_line import OrderLine  # noqa: F401
from bookstore.models.payment import Payment  # noqa: F401
from bookstore.models.cancel_request import CancelRequest  # noqa: F401
