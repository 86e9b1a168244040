"""User Directory — SQLAlchemy implementation of the UserDirectory protocol.

Invariants:
    - resolve() returns None for unknown users (the API maps that to 401)
    - Role read fresh on every request: a demotion takes effect immediately
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.domain_types import Principal, UserId
from bookstore.models.user import User


class SqlUserDirectory:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, user_id: UserId) -> Principal | None:
        row = await self.db.execute(
            select(User.id, User.role).where(User.id == user_id),
        )
        found = row.one_or_none()
        if not found:
            return None
        return Principal(user_id=UserId(found.id), role=found.role)
