"""Tests for the subscription lifecycle manager."""

from datetime import datetime, timedelta

import pytest

from app.core.exceptions import (
    InvalidTransitionError,
    NoSubscriptionError,
    PlanNotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)
from app.models.notification import NotificationType
from app.models.restaurant import Restaurant

NOW = datetime(2026, 1, 15, 12, 0, 0)


@pytest.mark.asyncio
async def test_create_starts_now_for_plan_duration(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)

    assert sub.status == "active"
    assert sub.start_date == NOW
    assert sub.end_date == NOW + timedelta(days=30)
    assert sub.plan_id == plans["basic"].id
    assert sub.plan_name == "Basic"
    assert sub.limits["maxProducts"] == 50
    assert sub.limits["maxBranches"] == 5


@pytest.mark.asyncio
async def test_create_merges_overrides(lifecycle, plans, restaurant):
    sub = await lifecycle.create(
        restaurant.id, plans["basic"].id, limits={"maxProducts": 80, "maxBranches": 0, "apiAccess": True}
    )
    assert sub.limits["maxProducts"] == 80
    assert sub.limits["maxBranches"] == 5
    assert sub.limits["apiAccess"] is True


@pytest.mark.asyncio
async def test_create_without_plan_uses_default_duration(lifecycle, restaurant):
    sub = await lifecycle.create(restaurant.id, "")
    assert sub.plan_id == 0
    assert sub.end_date == NOW + timedelta(days=30)
    assert sub.limits["maxBranches"] == 20


@pytest.mark.asyncio
async def test_create_with_unknown_plan(lifecycle, restaurant):
    with pytest.raises(PlanNotFoundError):
        await lifecycle.create(restaurant.id, 999)


@pytest.mark.asyncio
async def test_activate_without_subscription_creates_one(lifecycle, plans, restaurant, notifications):
    sub = await lifecycle.activate(None, restaurant.id, plans["pro"])

    assert sub.status == "active"
    assert sub.plan_id == plans["pro"].id
    assert restaurant.is_active is True
    assert notifications.sent == [(restaurant.id, "Subscription active", NotificationType.SUBSCRIPTION)]


@pytest.mark.asyncio
async def test_activate_extends_lapsed_end_date(lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    clock.advance(days=45)

    sub = await lifecycle.activate(sub, restaurant.id)

    assert sub.status == "active"
    assert sub.end_date == clock.now() + timedelta(days=30)


@pytest.mark.asyncio
async def test_activate_keeps_future_end_date(lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    original_end = sub.end_date
    clock.advance(days=5)

    sub = await lifecycle.activate(sub, restaurant.id)
    assert sub.end_date == original_end


@pytest.mark.asyncio
async def test_activate_unknown_restaurant(lifecycle, plans):
    with pytest.raises(RestaurantNotFoundError):
        await lifecycle.activate(None, 404, plans["basic"])


@pytest.mark.asyncio
async def test_pause_requires_subscription(lifecycle):
    with pytest.raises(NoSubscriptionError):
        await lifecycle.pause(None)


@pytest.mark.asyncio
async def test_pause_keeps_end_date(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    end = sub.end_date

    paused = await lifecycle.pause(sub)

    assert paused.status == "paused"
    assert paused.end_date == end


@pytest.mark.asyncio
async def test_pause_twice_is_invalid(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    await lifecycle.pause(sub)
    with pytest.raises(InvalidTransitionError):
        await lifecycle.pause(sub)


@pytest.mark.asyncio
async def test_pause_expired_is_invalid(lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    clock.advance(days=31)
    with pytest.raises(InvalidTransitionError):
        await lifecycle.pause(sub)


@pytest.mark.asyncio
async def test_resume_paused(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    end = sub.end_date
    await lifecycle.pause(sub)

    resumed = await lifecycle.resume(sub)

    assert resumed.status == "active"
    assert resumed.end_date == end


@pytest.mark.asyncio
async def test_resume_after_end_date_restarts_window(lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    await lifecycle.pause(sub)
    clock.advance(days=60)

    resumed = await lifecycle.resume(sub)
    assert resumed.end_date == clock.now() + timedelta(days=30)


@pytest.mark.asyncio
async def test_resume_requires_paused(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    with pytest.raises(InvalidTransitionError):
        await lifecycle.resume(sub)


@pytest.mark.asyncio
async def test_extend_accumulates_from_current_end(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    current_end = sub.end_date

    extended = await lifecycle.extend_by_days(sub, 30)
    assert extended.end_date == current_end + timedelta(days=30)


@pytest.mark.asyncio
async def test_extend_without_end_date_starts_from_now(lifecycle, restaurant):
    sub = await lifecycle.subscriptions.create({
        "restaurant_id": restaurant.id,
        "status": "active",
        "plan_id": 0,
        "start_date": NOW - timedelta(days=1),
        "end_date": None,
    })
    extended = await lifecycle.extend_by_days(sub, 10)
    assert extended.end_date == NOW + timedelta(days=10)


@pytest.mark.asyncio
async def test_extend_rejects_non_integer_days(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    with pytest.raises(ValidationError):
        await lifecycle.extend_by_days(sub, True)
    with pytest.raises(ValidationError):
        await lifecycle.extend_by_days(sub, -40)


@pytest.mark.asyncio
async def test_extend_requires_subscription(lifecycle):
    with pytest.raises(NoSubscriptionError):
        await lifecycle.extend_by_days(None, 5)


@pytest.mark.asyncio
async def test_update_plan_change_remerges_against_new_plan(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id, limits={"maxProducts": 75})

    updated = await lifecycle.update(sub.id, {"planId": plans["pro"].id})

    assert updated.plan_id == plans["pro"].id
    assert updated.plan_name == "Pro"
    assert updated.limits["maxProducts"] == 200
    assert updated.limits["advancedAnalytics"] is True


@pytest.mark.asyncio
async def test_update_limits_keeps_plan_for_zero_override(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)

    updated = await lifecycle.update(sub.id, {"limits": {"maxBranches": 0, "maxProducts": 60}})

    assert updated.limits["maxBranches"] == 5
    assert updated.limits["maxProducts"] == 60


@pytest.mark.asyncio
async def test_update_to_unknown_plan(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    with pytest.raises(PlanNotFoundError):
        await lifecycle.update(sub.id, {"plan_id": 42})


@pytest.mark.asyncio
async def test_update_rejects_inverted_window(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    with pytest.raises(ValidationError):
        await lifecycle.update(sub.id, {"end_date": NOW - timedelta(days=1)})


@pytest.mark.asyncio
async def test_update_rejects_malformed_plan_id(lifecycle, plans, restaurant):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    with pytest.raises(ValidationError):
        await lifecycle.update(sub.id, {"plan_id": "gold"})


@pytest.mark.asyncio
async def test_update_missing_subscription(lifecycle):
    with pytest.raises(NoSubscriptionError):
        await lifecycle.update(123, {"status": "paused"})


@pytest.mark.asyncio
async def test_blocking_active_subscription(lifecycle, plans, restaurant, clock):
    assert await lifecycle.has_blocking_active_subscription(restaurant.id) is False

    await lifecycle.create(restaurant.id, plans["basic"].id)
    assert await lifecycle.has_blocking_active_subscription(restaurant.id) is True

    clock.advance(days=30)
    assert await lifecycle.has_blocking_active_subscription(restaurant.id) is False


@pytest.mark.asyncio
async def test_sweep_persists_expiry_exactly_once(lifecycle, plans, restaurant, db, clock):
    other = Restaurant(name="Falafel Corner")
    db.add(other)
    await db.commit()

    lapsed = await lifecycle.create(restaurant.id, plans["basic"].id, duration_days=5)
    current = await lifecycle.create(other.id, plans["unlimited"].id)
    clock.advance(days=10)

    first = await lifecycle.sweep_expired()
    second = await lifecycle.sweep_expired()

    assert first.subscription_ids == [lapsed.id]
    assert second.expired == 0
    assert lapsed.status == "expired"
    assert current.status == "active"


@pytest.mark.asyncio
async def test_sweep_skips_paused(lifecycle, plans, restaurant, clock):
    sub = await lifecycle.create(restaurant.id, plans["basic"].id)
    await lifecycle.pause(sub)
    clock.advance(days=90)

    result = await lifecycle.sweep_expired()

    assert result.expired == 0
    assert sub.status == "paused"


@pytest.mark.asyncio
async def test_describe_reports_derived_state(lifecycle, plans, restaurant, clock):
    await lifecycle.create(restaurant.id, plans["basic"].id)
    clock.advance(days=31)

    view = await lifecycle.describe(restaurant.id)

    assert view.subscription.status == "active"
    assert view.derived_status == "expired"
    assert view.days_until_expiry == -1
    assert view.effective_limits["maxProducts"] == 50


@pytest.mark.asyncio
async def test_overview_counts_restaurants_without_subscription(lifecycle, plans, restaurant, db):
    db.add(Restaurant(name="No Plan Grill"))
    await db.commit()
    await lifecycle.create(restaurant.id, plans["basic"].id)

    overview = await lifecycle.overview()

    assert overview.counts["active"] == 1
    assert overview.counts["none"] == 1
    assert [item.restaurant_id for item in overview.subscriptions] == [restaurant.id]


async def add_restaurants(db, *names):
    restaurants = [Restaurant(name=name) for name in names]
    db.add_all(restaurants)
    await db.commit()
    return restaurants


@pytest.mark.asyncio
async def test_sweep_reaches_lapsed_row_behind_a_full_batch(lifecycle, plans, restaurant, db, clock):
    second, third = await add_restaurants(db, "Falafel Corner", "Shawarma Stop")
    for r in (restaurant, second):
        sub = await lifecycle.create(r.id, plans["basic"].id)
        await lifecycle.extend_by_days(sub, 365)
    lapsed = await lifecycle.create(third.id, plans["basic"].id)
    clock.advance(days=31)

    result = await lifecycle.sweep_expired(limit=2)

    assert result.subscription_ids == [lapsed.id]
    assert lapsed.status == "expired"
    assert (await lifecycle.sweep_expired(limit=2)).expired == 0


@pytest.mark.asyncio
async def test_sweep_pages_until_every_lapsed_row_is_written(lifecycle, plans, restaurant, db, clock):
    others = await add_restaurants(db, "Falafel Corner", "Shawarma Stop")
    subs = [await lifecycle.create(r.id, plans["basic"].id) for r in (restaurant, *others)]
    clock.advance(days=31)

    result = await lifecycle.sweep_expired(limit=1)

    assert result.expired == 3
    assert sorted(result.subscription_ids) == sorted(sub.id for sub in subs)
    assert all(sub.status == "expired" for sub in subs)


@pytest.mark.asyncio
async def test_create_refuses_second_subscription_for_restaurant(lifecycle, plans, restaurant):
    first = await lifecycle.create(restaurant.id, plans["basic"].id)

    with pytest.raises(InvalidTransitionError) as exc:
        await lifecycle.create(restaurant.id, plans["pro"].id)

    assert exc.value.status_code == 409
    assert exc.value.context["subscription_id"] == first.id
    assert exc.value.context["current_status"] == "active"
    rows = await lifecycle.subscriptions.list()
    assert [sub.id for sub in rows] == [first.id]


@pytest.mark.asyncio
async def test_create_refused_even_after_expiry(lifecycle, plans, restaurant, clock):
    await lifecycle.create(restaurant.id, plans["basic"].id)
    clock.advance(days=40)

    with pytest.raises(InvalidTransitionError) as exc:
        await lifecycle.create(restaurant.id, plans["basic"].id)
    assert exc.value.context["current_status"] == "expired"

    renewed = await lifecycle.activate(await lifecycle.get_current(restaurant.id), restaurant.id)
    assert renewed.status == "active"
