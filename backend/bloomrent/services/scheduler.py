"""Background invite-expiry sweep.

Uses FastAPI's lifespan context to start/stop an asyncio loop that flips
overdue pending/sent invites to ``expired`` every
``invite_sweep_interval_minutes``. The accept page also expires invites on
access, so the sweep only keeps listings accurate.

Configuration:
    SCHEDULER_ENABLED=true
    INVITE_SWEEP_INTERVAL_MINUTES=60
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from bloomrent.config import settings
from bloomrent.dal.invites import expire_overdue_invites
from bloomrent.database import async_session
from bloomrent.utils.cache import close_redis

logger = logging.getLogger(__name__)


async def run_invite_sweep() -> int:
    """Expire overdue invites in one transaction; return how many."""
    async with async_session() as db:
        try:
            count = await expire_overdue_invites(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    if count:
        logger.info(f"Expired {count} overdue invites")
    return count


async def _scheduler_loop() -> None:
    interval = settings.invite_sweep_interval_minutes * 60
    while True:
        try:
            await run_invite_sweep()
        except SQLAlchemyError:
            logger.exception("Invite sweep failed")
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the sweep on startup; cancel it and close Redis on shutdown."""
    task = None
    if settings.scheduler_enabled:
        task = asyncio.create_task(_scheduler_loop())
        logger.info("Invite expiry sweep started")
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Invite expiry sweep stopped")
        await close_redis()
