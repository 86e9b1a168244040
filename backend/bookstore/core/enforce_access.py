"""Access Enforcement — ownership and role checks on an explicit Principal.

Invariants:
    - Pure: decisions depend only on the Principal and the owner id passed in
    - Every check raises AccessDeniedError (403), never returns a flag

Design Decisions:
    - Owner-or-admin is the default rule for reads and user-initiated mutations;
      owner-only is reserved for cancellation requests (admins resolve, never request)
"""

from uuid import UUID

from bookstore.core.domain_types import Principal
from bookstore.core.errors import AccessDeniedError, ErrorContext


def require_admin(principal: Principal, action: str) -> None:
    if not principal.is_admin:
        raise AccessDeniedError(f"{action} requires admin role")


def require_owner(
    principal: Principal, owner_id: UUID, action: str,
    context: ErrorContext | None = None,
) -> None:
    if principal.user_id != owner_id:
        raise AccessDeniedError(f"{action} is restricted to the order owner", context)


def require_owner_or_admin(
    principal: Principal, owner_id: UUID, action: str,
    context: ErrorContext | None = None,
) -> None:
    if principal.is_admin:
        return
    if principal.user_id != owner_id:
        raise AccessDeniedError(
            f"{action} is restricted to the order owner or an admin", context,
        )
