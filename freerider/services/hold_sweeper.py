"""
Hold sweeper: reclaims InquiryConfirmed reservations whose hold has run out.

A customer who never resubmits still has their hold purged: this task wakes up
every HOLD_SWEEP_INTERVAL_SECONDS, independently of request traffic, so an
abandoned hold lives at most one interval past its deadline. Late resubmissions
see the exact deadline anyway (ReservationLifecycle checks it on access).
"""

import asyncio
from datetime import timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from freerider.domain.factory import EntityFactory
from freerider.services.data_store import DataStore
from freerider.services.reservation_lifecycle import ReservationLifecycle, utc_now
from freerider.utils.logger import get_logger

logger = get_logger(__name__)


def sweep_once(session_factory: Callable, factory: EntityFactory,
               clock=utc_now, hold_timeout: timedelta = timedelta(minutes=10)) -> int:
    """Run one sweep with a fresh DB session. Returns the number of holds purged."""
    db = session_factory()
    try:
        lifecycle = ReservationLifecycle(DataStore(db, factory), factory, clock, hold_timeout)
        return lifecycle.expire_holds()
    finally:
        db.close()


async def run_hold_sweeper(session_factory: Callable, factory: EntityFactory,
                           interval_seconds: float, clock=utc_now,
                           hold_timeout: timedelta = timedelta(minutes=10)):
    """
    Sweep forever. The blocking sweep runs in a worker thread so request
    handling on the event loop is not held up. Errors are logged and the loop
    carries on with the next interval.
    """
    logger.info(f"🧹 Hold sweeper started (every {interval_seconds}s)")
    while True:
        try:
            purged = await asyncio.to_thread(sweep_once, session_factory, factory, clock, hold_timeout)
            if purged:
                logger.info(f"🧹 {purged} expired hold(s) purged")
        except SQLAlchemyError as e:
            logger.error(f"Hold sweep failed (database): {e}")
        except Exception as e:
            logger.error(f"Hold sweep failed: {e}", exc_info=True)
        await asyncio.sleep(interval_seconds)
