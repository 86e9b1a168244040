"""Bookstore API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map BookstoreError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan
    - The expired-payment sweeper runs only when payment_cleanup_interval_seconds > 0

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py, registered in one call
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bookstore.api.error_handlers import register_error_handlers
from bookstore.api.routes import health, orders, payments
from bookstore.config import get_settings
from bookstore.infrastructure.database import init_db
from bookstore.infrastructure.observability import setup_logging
from bookstore.services.payment_sweeper import run_payment_sweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )

    sweeper: asyncio.Task | None = None
    if settings.payment_cleanup_interval_seconds > 0:
        sweeper = asyncio.create_task(
            run_payment_sweeper(
                settings.payment_cleanup_interval_seconds,
                settings.payment_expiry_hours,
            ),
        )
    logger.info("Bookstore API started")
    yield
    logger.info("Bookstore API shutting down")
    if sweeper:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await manager.dispose()


app = FastAPI(
    title="Bookstore API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(orders.router)
app.include_router(payments.router)

register_error_handlers(app)
