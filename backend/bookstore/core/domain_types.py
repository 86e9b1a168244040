"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - OrderId, PaymentId, BookId, UserId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - Enums carry only their tag; human labels live in separate lookup tables

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - Principal is an explicit frozen value passed into every operation
      (ADR: no ambient "current user" context)
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
BookId = NewType("BookId", UUID)
OrderId = NewType("OrderId", UUID)
PaymentId = NewType("PaymentId", UUID)
TransactionId = NewType("TransactionId", str)


# ─── Value Types ─────────────────────────────────────────────────

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    """Normalize to two decimal places (Numeric(10, 2) column scale)."""
    return Decimal(value).quantize(MONEY_QUANTUM)


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class OrderStatus(str, Enum):
    """Order lifecycle — CANCELLED is terminal."""
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    ALIPAY = "ALIPAY"
    WECHAT_PAY = "WECHAT_PAY"
    BANK_CARD = "BANK_CARD"
    CREDIT_CARD = "CREDIT_CARD"


class PaymentStatus(str, Enum):
    """Payment lifecycle — maps to DB `status` column."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"
    PARTIAL_REFUNDED = "PARTIAL_REFUNDED"


class CancelRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class GatewayOutcome(str, Enum):
    """Outcome reported by the external payment gateway."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


# ─── Display Labels ──────────────────────────────────────────────

PAYMENT_METHOD_LABELS: dict[PaymentMethod, str] = {
    PaymentMethod.ALIPAY: "Alipay",
    PaymentMethod.WECHAT_PAY: "WeChat Pay",
    PaymentMethod.BANK_CARD: "Bank card",
    PaymentMethod.CREDIT_CARD: "Credit card",
}

PAYMENT_STATUS_LABELS: dict[PaymentStatus, str] = {
    PaymentStatus.PENDING: "Awaiting payment",
    PaymentStatus.PROCESSING: "Processing",
    PaymentStatus.SUCCESS: "Paid",
    PaymentStatus.FAILED: "Payment failed",
    PaymentStatus.CANCELLED: "Cancelled",
    PaymentStatus.REFUNDED: "Refunded",
    PaymentStatus.PARTIAL_REFUNDED: "Partially refunded",
}


def display_label(tag: PaymentMethod | PaymentStatus) -> str:
    """Human-readable label for a payment method or status tag."""
    if isinstance(tag, PaymentMethod):
        return PAYMENT_METHOD_LABELS[tag]
    return PAYMENT_STATUS_LABELS[tag]


# ─── Principal ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Principal:
    """The resolved caller of an operation."""
    user_id: UserId
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
