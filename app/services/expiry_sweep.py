"""Periodic expiry detection.

Status expiry is derived lazily; this loop is the external driver that
re-derives it on a fixed interval and persists each observed expiry once.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.database import async_session
from app.schemas.subscription import ExpirySweepResult
from app.services.subscription_lifecycle import SubscriptionLifecycleManager
from app.stores.sql import SqlPlanStore, SqlRestaurantStore, SqlSubscriptionStore

logger = logging.getLogger(__name__)


async def run_expiry_sweep(
    db: AsyncSession,
    clock: Clock = system_clock,
    limit: Optional[int] = None,
) -> ExpirySweepResult:
    manager = SubscriptionLifecycleManager(
        plans=SqlPlanStore(db),
        subscriptions=SqlSubscriptionStore(db),
        restaurants=SqlRestaurantStore(db),
        clock=clock,
    )
    return await manager.sweep_expired(limit)


async def run_expiry_sweep_forever(
    session_factory=async_session,
    interval_seconds: Optional[int] = None,
    clock: Clock = system_clock,
) -> None:
    """Sweep on a fixed interval until cancelled; one failed pass never stops the loop."""
    interval = interval_seconds or settings.EXPIRY_SWEEP_INTERVAL_SECONDS
    logger.info("Expiry sweep started (every %ss)", interval)
    while True:
        try:
            async with session_factory() as db:
                await run_expiry_sweep(db, clock)
        except asyncio.CancelledError:
            logger.info("Expiry sweep stopped")
            raise
        except Exception as e:
            logger.error("Expiry sweep failed: %s", e, exc_info=True)
        await asyncio.sleep(interval)
