"""Order ORM — aggregate root for a purchase; owns its lines.

Invariants:
    - total_price == sum(line.price_at_purchase * line.quantity), written once at creation
    - status transitions: PENDING -> PAID -> SHIPPED, any of them -> CANCELLED (terminal)
    - Orders are never deleted

Design Decisions:
    - lines loaded with selectin: the order is always used together with its lines,
      and async sessions cannot lazy-load
    - Payment and CancelRequest reference the order by id and are loaded explicitly
      (ADR: no implicit object graph across aggregates)
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from bookstore.core.domain_types import OrderStatus
from bookstore.db.base import Base


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, native_enum=False, length=20),
        nullable=False, default=OrderStatus.PENDING,
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine", back_populates="order",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="OrderLine.position",
    )
