"""Error Hierarchy — typed, categorized exceptions for all bookstore failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are surfaced synchronously and never retried internally
    - Infrastructure errors (5xx) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with BookstoreError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    order_id: str | None = None
    payment_id: str | None = None
    transaction_id: str | None = None
    book_id: str | None = None
    debug_info: dict[str, Any] | None = None

    def identifiers(self) -> dict[str, str]:
        """Entity ids set on this context; debug_info never leaves the process."""
        return {
            name: value
            for name in ("order_id", "payment_id", "transaction_id", "book_id")
            if (value := getattr(self, name)) is not None
        }


class BookstoreError(Exception):
    """Base exception for all bookstore errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": self.context.identifiers(),
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(BookstoreError):
    """Operation input failed a domain validation rule."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class AuthenticationRequiredError(BookstoreError):
    """No principal could be resolved for the request."""
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, None, 401,
        )


class AccessDeniedError(BookstoreError):
    """Ownership or role check failed."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Access denied: {action}",
            "ACCESS_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.action = action


class ResourceNotFoundError(BookstoreError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class InvalidStateTransitionError(BookstoreError):
    """Operation attempted outside its legal source state."""
    def __init__(
        self,
        entity: str,
        current: str,
        operation: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Cannot {operation}: {entity} is {current}",
            "INVALID_STATE_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.entity = entity
        self.current = current
        self.operation = operation


class InsufficientStockError(BookstoreError):
    """Book stock cannot cover the requested quantity."""
    def __init__(
        self, book_id: str, requested: int, available: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.book_id = book_id
        super().__init__(
            f"Insufficient stock for book '{book_id}' (requested {requested})",
            "INSUFFICIENT_STOCK", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.requested = requested
        self.available = available


class AmountExceededError(BookstoreError):
    """Refund would exceed the remaining refundable balance."""
    def __init__(
        self, requested: Decimal, remaining: Decimal, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Refund of {requested} exceeds remaining refundable amount {remaining}",
            "AMOUNT_EXCEEDED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.requested = requested
        self.remaining = remaining


class DuplicatePaymentError(BookstoreError):
    """A payment already exists for the order."""
    def __init__(self, order_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        super().__init__(
            f"Payment already exists for order '{order_id}'",
            "DUPLICATE_PAYMENT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


class DuplicateRequestError(BookstoreError):
    """A cancel request already exists for the order."""
    def __init__(self, order_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        super().__init__(
            f"Cancel request already exists for order '{order_id}'",
            "DUPLICATE_REQUEST", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(BookstoreError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ConcurrencyError(BookstoreError):
    """Concurrent modification detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
