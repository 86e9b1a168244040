"""Database Session Manager — async engine, per-request sessions, error translation.

Invariants:
    - A session that exits with any exception is rolled back before the error leaves
    - Domain errors (BookstoreError) pass through unchanged
    - A version-column mismatch escaping a service surfaces as ConcurrencyError (409)
    - Every other SQLAlchemy failure surfaces as DatabaseError (503), details only in logs

Design Decisions:
    - Module-level db_manager set by init_db() from the FastAPI lifespan; the payment
      sweeper reads it at call time, so tests can swap it
    - expire_on_commit=False: services return ORM rows after commit, async sessions
      cannot lazy-load expired attributes
    - Pool sizing only for server databases (SQLite picks its own pool class)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.orm.exc import StaleDataError

from bookstore.core.errors import BookstoreError, ConcurrencyError, DatabaseError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIError subclasses
_ERROR_TRANSLATIONS: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def translate_db_error(exc: SQLAlchemyError) -> BookstoreError:
    """Map a raw SQLAlchemy exception onto the bookstore error hierarchy."""
    if isinstance(exc, StaleDataError):
        return ConcurrencyError("Row was modified concurrently, retry the operation")
    for exc_type, message, operation in _ERROR_TRANSLATIONS:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the engine and hands out sessions that roll back on failure."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options |= {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_recycle": 3600,
            }
        self.engine = create_async_engine(database_url, **options)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except BookstoreError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            translated = translate_db_error(e)
            logger.error(
                f"{type(e).__name__}: {e}",
                extra={"error_code": translated.code},
            )
            raise translated from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 through a fresh session; False instead of raising."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (BookstoreError, OSError) as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
