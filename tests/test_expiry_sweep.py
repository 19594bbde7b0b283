"""Tests for the periodic expiry driver."""

import asyncio

import pytest

from app.models.subscription import Subscription
from app.services.expiry_sweep import run_expiry_sweep, run_expiry_sweep_forever


@pytest.mark.asyncio
async def test_run_expiry_sweep(db, lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    clock.advance(days=30)

    result = await run_expiry_sweep(db, clock)

    assert result.subscription_ids == [sub.id]
    await db.refresh(sub)
    assert sub.status == "expired"


@pytest.mark.asyncio
async def test_sweep_loop_runs_until_cancelled(session_factory, lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    clock.advance(days=31)

    task = asyncio.create_task(run_expiry_sweep_forever(session_factory, interval_seconds=3600, clock=clock))
    status = None
    for _ in range(50):
        await asyncio.sleep(0.02)
        async with session_factory() as session:
            status = (await session.get(Subscription, sub.id)).status
        if status == "expired":
            break
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert status == "expired"
