"""API Dependencies — resolve the calling Principal from the request.

Invariants:
    - Every order/payment route receives an explicit Principal
    - Missing, malformed or unknown X-User-Id -> 401 (AuthenticationRequiredError)

Design Decisions:
    - Identity header over session tokens: authentication is terminated upstream
      (ADR: this service only needs id + role)
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.domain_types import Principal, UserId
from bookstore.core.errors import AuthenticationRequiredError
from bookstore.infrastructure.database import get_db
from bookstore.services.user_directory import SqlUserDirectory


async def get_principal(
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if not x_user_id:
        raise AuthenticationRequiredError()
    try:
        user_id = UserId(UUID(x_user_id))
    except ValueError:
        raise AuthenticationRequiredError("Malformed X-User-Id header")
    principal = await SqlUserDirectory(db).resolve(user_id)
    if principal is None:
        raise AuthenticationRequiredError("Unknown user")
    return principal
