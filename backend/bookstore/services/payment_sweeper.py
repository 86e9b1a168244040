"""Payment Sweeper — periodic in-process run of cleanup_expired_payments.

Invariants:
    - Each run uses its own DB session (the request sessions are unrelated)
    - A failed run is logged and the loop continues; cancellation stops it cleanly
    - Disabled unless payment_cleanup_interval_seconds > 0

Design Decisions:
    - asyncio task owned by the FastAPI lifespan over an external scheduler
      (ADR: single-process deployment; multiple workers would sweep redundantly but safely,
      since each transition is a conditional UPDATE)
"""

import asyncio
import logging
from datetime import timedelta

from bookstore.infrastructure import database
from bookstore.services.payment_processor import PaymentProcessor

logger = logging.getLogger(__name__)


async def sweep_once(expiry_hours: int) -> int:
    if not database.db_manager:
        raise RuntimeError("Database not initialized")
    async with database.db_manager.session() as db:
        return await PaymentProcessor(db).cleanup_expired_payments(
            ttl=timedelta(hours=expiry_hours),
        )


async def run_payment_sweeper(interval_seconds: int, expiry_hours: int) -> None:
    """Loop forever: sweep, sleep. Cancel the task to stop."""
    logger.info(f"Payment sweeper started (every {interval_seconds}s)")
    while True:
        try:
            cancelled = await sweep_once(expiry_hours)
            if cancelled:
                logger.info(
                    "Expired payments swept", extra={"count": cancelled},
                )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Payment sweep failed: {e}", exc_info=True)
        await asyncio.sleep(interval_seconds)
