"""CancelRequest ORM — a user's request to cancel an already-shipped order.

Invariants:
    - order_id is UNIQUE: at most one request per order, whatever its outcome
    - status transitions: PENDING -> APPROVED | REJECTED, exactly once
    - processed_at set when resolved
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from bookstore.core.domain_types import CancelRequestStatus
from bookstore.db.base import Base


class CancelRequest(Base):
    __tablename__ = "cancel_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, unique=True,
    )
    status: Mapped[CancelRequestStatus] = mapped_column(
        SAEnum(CancelRequestStatus, native_enum=False, length=20),
        nullable=False, default=CancelRequestStatus.PENDING,
    )
    reason: Mapped[str] = mapped_column(String(1000), nullable=False)
    admin_note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
