"""Service test fixtures — async DB, FastAPI test client, seeded users and books.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - db_manager patched for code paths that bypass get_db (payment sweeper)
    - Seed fixtures return ids and Principals, never ORM instances: a rollback
      inside a service expires every instance in the session

Design Decisions:
    - SQLite in-memory: fast, no external dependency; FOR UPDATE is a no-op there,
      so concurrency tests check the conditional-update semantics sequentially
"""

from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from bookstore.core.domain_types import Principal, UserId, UserRole
from bookstore.db.base import Base
from bookstore.infrastructure.database import get_db, DatabaseSessionManager
import bookstore.infrastructure.database as db_module
import bookstore.models  # noqa: F401
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.models.payment import Payment
from bookstore.models.user import User
from bookstore.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def users(test_session_factory):
    """Two customers and one admin, as Principals."""
    async with test_session_factory() as db:
        alice = User(username="alice", role=UserRole.USER)
        bob = User(username="bob", role=UserRole.USER)
        admin = User(username="admin", role=UserRole.ADMIN)
        db.add_all([alice, bob, admin])
        await db.commit()
        return SimpleNamespace(
            alice=Principal(UserId(alice.id), UserRole.USER),
            bob=Principal(UserId(bob.id), UserRole.USER),
            admin=Principal(UserId(admin.id), UserRole.ADMIN),
        )


@pytest.fixture
async def books(test_session_factory):
    """Catalog seed. dune: 12.50 x5, sicp: 50.00 x10, rare: 20.00 x1."""
    async with test_session_factory() as db:
        dune = Book(title="Dune", author="Frank Herbert", price=Decimal("12.50"), stock=5)
        sicp = Book(
            title="Structure and Interpretation of Computer Programs",
            author="Abelson & Sussman", price=Decimal("50.00"), stock=10,
        )
        rare = Book(title="First Folio", author="William Shakespeare", price=Decimal("20.00"), stock=1)
        db.add_all([dune, sicp, rare])
        await db.commit()
        return SimpleNamespace(dune=dune.id, sicp=sicp.id, rare=rare.id)


@pytest.fixture
def auth():
    """Build the identity header for a Principal."""
    def _headers(principal: Principal) -> dict[str, str]:
        return {"X-User-Id": str(principal.user_id)}
    return _headers


@pytest.fixture
def stock_of(test_session_factory):
    """Read a book's stock straight from the database (ids may be str or UUID)."""
    async def _stock(book_id) -> int:
        async with test_session_factory() as db:
            return await db.scalar(select(Book.stock).where(Book.id == UUID(str(book_id))))
    return _stock


@pytest.fixture
def order_status_of(test_session_factory):
    async def _status(order_id):
        async with test_session_factory() as db:
            return await db.scalar(select(Order.status).where(Order.id == UUID(str(order_id))))
    return _status


@pytest.fixture
def payment_status_of(test_session_factory):
    async def _status(payment_id):
        async with test_session_factory() as db:
            return await db.scalar(select(Payment.status).where(Payment.id == UUID(str(payment_id))))
    return _status
