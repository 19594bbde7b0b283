"""Subscription lifecycle: create, activate, pause, resume, extend, update.

State machine over Subscription.status:

    none -> active             create / activate / payment approval
    active <-> paused          pause / resume
    active -> expired          detected from end_date, persisted by the sweep
    active -> active           extend_by_days

Expiry is never commanded; it is observed through derive_status and
written back once by sweep_expired. A paused subscription never derives
to expired, so it stays paused past its end date until resumed.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.exceptions import (
    InvalidTransitionError,
    NoSubscriptionError,
    PlanNotFoundError,
    ValidationError,
)
from app.core.limits import merge_limits
from app.core.status import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_NONE,
    STATUS_PAUSED,
    STATUS_TRIAL,
    days_until_expiry,
    derive_status,
    parse_timestamp,
)
from app.models.notification import NotificationType
from app.models.subscription import Subscription
from app.schemas.common import normalize_plan_id
from app.schemas.plan import PlanData, normalize_plan
from app.schemas.subscription import (
    ExpirySweepResult,
    SubscriptionOut,
    SubscriptionOverview,
    SubscriptionStatusItem,
    SubscriptionUpdate,
    SubscriptionView,
)
from app.stores.base import PlanStore, RestaurantStore, SubscriptionStore

logger = logging.getLogger(__name__)

Notifier = Callable[[int, str, str, NotificationType], Awaitable[Any]]

PAUSABLE_STATUSES = (STATUS_ACTIVE, STATUS_TRIAL)
# paused rows never derive to expired, so the sweep skips them
SWEEPABLE_STATUSES = (STATUS_ACTIVE, STATUS_TRIAL)


async def effective_limits_for(plans: PlanStore, subscription: Optional[Subscription]) -> Dict[str, Any]:
    """Merge a subscription's stored limits over its plan's current limits."""
    if subscription is None:
        return merge_limits({}, {})
    plan = await plans.get_plan(subscription.plan_id) if subscription.plan_id else None
    return merge_limits(plan.limits if plan else {}, subscription.limits)


class SubscriptionLifecycleManager:
    """Orchestrates subscription writes and keeps the restaurant's active flag in step."""

    def __init__(
        self,
        plans: PlanStore,
        subscriptions: SubscriptionStore,
        restaurants: RestaurantStore,
        clock: Clock = system_clock,
        notifier: Optional[Notifier] = None,
    ):
        self.plans = plans
        self.subscriptions = subscriptions
        self.restaurants = restaurants
        self.clock = clock
        self.notifier = notifier

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _duration_days(self, plan: Optional[PlanData]) -> int:
        if plan is not None and plan.duration_days:
            return int(plan.duration_days)
        return settings.DEFAULT_PLAN_DURATION_DAYS

    async def load_plan(self, plan_id: Any) -> Optional[PlanData]:
        """Resolve a plan reference; 0 means no plan, unknown ids are an error."""
        plan_id = normalize_plan_id(plan_id)
        if plan_id == 0:
            return None
        plan = await self.plans.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    @staticmethod
    def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
        if start is not None and end is not None and end <= start:
            raise ValidationError(
                "end_date must be after start_date",
                field="end_date",
                value=end.isoformat(),
            )

    @staticmethod
    def _plan_fields(plan: Optional[PlanData]) -> Dict[str, Any]:
        return {
            "plan_id": plan.id if plan else 0,
            "plan_name": plan.name if plan else None,
            "plan_price": plan.price if plan else 0,
            "features": list(plan.features or []) if plan else [],
        }

    async def _notify(self, restaurant_id: int, title: str, message: str) -> None:
        if self.notifier is None:
            return
        await self.notifier(restaurant_id, title, message, NotificationType.SUBSCRIPTION)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    async def get_current(self, restaurant_id: int) -> Optional[Subscription]:
        return await self.subscriptions.get_by_restaurant(restaurant_id)

    async def effective_limits(self, subscription: Optional[Subscription]) -> Dict[str, Any]:
        return await effective_limits_for(self.plans, subscription)

    async def has_blocking_active_subscription(self, restaurant_id: int) -> bool:
        """True while the restaurant's current subscription derives to active.

        A restaurant in this state may not submit a new payment request.
        """
        subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
        return derive_status(subscription, self.clock.now()) == STATUS_ACTIVE

    async def describe(self, restaurant_id: int) -> SubscriptionView:
        subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
        now = self.clock.now()
        return SubscriptionView(
            subscription=SubscriptionOut.model_validate(subscription) if subscription else None,
            derived_status=derive_status(subscription, now),
            effective_limits=await self.effective_limits(subscription),
            days_until_expiry=days_until_expiry(subscription, now),
        )

    async def list_subscriptions(self, status: Optional[str] = None) -> List[Subscription]:
        return await self.subscriptions.list(status=status)

    async def overview(self) -> SubscriptionOverview:
        """Derived status of every restaurant's current subscription."""
        now = self.clock.now()
        current: Dict[int, Subscription] = {}
        # list() is ordered newest-first within each restaurant
        for subscription in await self.subscriptions.list():
            current.setdefault(subscription.restaurant_id, subscription)

        counts = {STATUS_ACTIVE: 0, STATUS_PAUSED: 0, STATUS_EXPIRED: 0, STATUS_NONE: 0}
        items = []
        for subscription in current.values():
            derived = derive_status(subscription, now)
            counts[derived] = counts.get(derived, 0) + 1
            items.append(
                SubscriptionStatusItem(
                    subscription_id=subscription.id,
                    restaurant_id=subscription.restaurant_id,
                    plan_id=subscription.plan_id,
                    plan_name=subscription.plan_name,
                    status=subscription.status,
                    derived_status=derived,
                    end_date=subscription.end_date,
                )
            )

        restaurants = await self.restaurants.list()
        counts[STATUS_NONE] = sum(1 for r in restaurants if r.id not in current)
        return SubscriptionOverview(counts=counts, subscriptions=items)

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------

    async def create(
        self,
        restaurant_id: int,
        plan_id: Any,
        limits: Optional[Mapping[str, Any]] = None,
        features: Optional[List[str]] = None,
        duration_days: Optional[int] = None,
    ) -> Subscription:
        """Start a new active subscription running for the plan's duration from now.

        A restaurant has at most one current subscription; when one already
        exists the change has to go through activate or update instead.
        """
        now = self.clock.now()
        existing = await self.subscriptions.get_by_restaurant(restaurant_id)
        if existing is not None:
            raise InvalidTransitionError(
                "subscription",
                derive_status(existing, now),
                STATUS_ACTIVE,
                context={"restaurant_id": restaurant_id, "subscription_id": existing.id},
            )
        plan = await self.load_plan(plan_id)
        end = now + timedelta(days=duration_days if duration_days is not None else self._duration_days(plan))
        self._check_window(now, end)

        data = {
            "restaurant_id": restaurant_id,
            "status": STATUS_ACTIVE,
            "start_date": now,
            "end_date": end,
            "limits": merge_limits(plan.limits if plan else {}, limits or {}),
            **self._plan_fields(plan),
        }
        if features is not None:
            data["features"] = list(features)
        return await self.subscriptions.create(data)

    async def activate(
        self,
        subscription: Optional[Subscription],
        restaurant_id: int,
        plan: Optional[PlanData] = None,
        restart_window_days: Optional[int] = None,
    ) -> Subscription:
        """Make the restaurant's subscription active and the restaurant itself active.

        With an existing record the status becomes active and an end date at
        or before now is pushed to now + plan duration. Passing ``plan``
        switches the subscription to that plan and re-merges its limits.
        ``restart_window_days`` starts a fresh window from now regardless of
        any time left on the current one.
        """
        now = self.clock.now()
        plan = normalize_plan(plan)

        if subscription is None:
            subscription = await self.create(
                restaurant_id, plan.id if plan else 0, duration_days=restart_window_days
            )
        else:
            if plan is None and subscription.plan_id:
                plan = await self.plans.get_plan(subscription.plan_id)

            patch: Dict[str, Any] = {"status": STATUS_ACTIVE}
            if plan is not None and plan.id != subscription.plan_id:
                patch.update(self._plan_fields(plan))
                patch["limits"] = merge_limits(plan.limits, {})
            elif plan is not None:
                patch["limits"] = merge_limits(plan.limits, subscription.limits)
                patch["features"] = list(plan.features or subscription.features or [])

            start = parse_timestamp(subscription.start_date) or now
            end = parse_timestamp(subscription.end_date)
            if restart_window_days is not None:
                start = now
                end = now + timedelta(days=restart_window_days)
            elif end is None or end <= now:
                end = now + timedelta(days=self._duration_days(plan))
            if end <= start:
                start = now
            self._check_window(start, end)
            patch["start_date"] = start
            patch["end_date"] = end

            subscription = await self.subscriptions.update(subscription.id, patch)

        await self.restaurants.set_active(restaurant_id, True)
        logger.info(
            "Activated subscription %s for restaurant %s (plan=%s, ends=%s)",
            subscription.id,
            restaurant_id,
            subscription.plan_id,
            subscription.end_date,
        )
        await self._notify(
            restaurant_id,
            "Subscription active",
            f"Your {subscription.plan_name or 'subscription'} plan is active until "
            f"{subscription.end_date:%Y-%m-%d}.",
        )
        return subscription

    async def pause(self, subscription: Optional[Subscription]) -> Subscription:
        """Pause an active subscription; the end date is left untouched."""
        if subscription is None:
            raise NoSubscriptionError()
        current = derive_status(subscription, self.clock.now())
        if current not in PAUSABLE_STATUSES:
            raise InvalidTransitionError(
                "subscription", current, STATUS_PAUSED, context={"subscription_id": subscription.id}
            )
        paused = await self.subscriptions.update(subscription.id, {"status": STATUS_PAUSED})
        logger.info("Paused subscription %s for restaurant %s", paused.id, paused.restaurant_id)
        return paused

    async def resume(self, subscription: Optional[Subscription]) -> Subscription:
        """Reactivate a paused subscription."""
        if subscription is None:
            raise NoSubscriptionError()
        if subscription.status != STATUS_PAUSED:
            current = derive_status(subscription, self.clock.now())
            raise InvalidTransitionError(
                "subscription", current, STATUS_ACTIVE, context={"subscription_id": subscription.id}
            )
        return await self.activate(subscription, subscription.restaurant_id)

    async def extend_by_days(self, subscription: Optional[Subscription], days: int) -> Subscription:
        """Push the end date forward from the current end date (or now when unset)."""
        if subscription is None:
            raise NoSubscriptionError()
        if isinstance(days, bool) or not isinstance(days, int):
            raise ValidationError("days must be a whole number", field="days", value=days)

        base = parse_timestamp(subscription.end_date) or self.clock.now()
        new_end = base + timedelta(days=days)
        self._check_window(parse_timestamp(subscription.start_date), new_end)

        extended = await self.subscriptions.update(subscription.id, {"end_date": new_end})
        logger.info(
            "Extended subscription %s by %d days: %s -> %s", extended.id, days, base, new_end
        )
        return extended

    async def update(
        self,
        subscription_id: int,
        fields: Union[SubscriptionUpdate, Mapping[str, Any]],
    ) -> Subscription:
        """Apply a field patch.

        Whenever plan_id or limits change, limits are re-merged against the
        newly selected plan; a plan switch drops overrides from the old plan.
        """
        if isinstance(fields, SubscriptionUpdate):
            update = fields
        else:
            try:
                update = SubscriptionUpdate.model_validate(dict(fields))
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid subscription update: {e}")
        patch = update.model_dump(exclude_unset=True)

        current = await self.subscriptions.get(subscription_id)
        if current is None:
            raise NoSubscriptionError(subscription_id=subscription_id)

        if "plan_id" in patch or "limits" in patch:
            new_plan_id = patch.get("plan_id", current.plan_id)
            plan_changed = new_plan_id != current.plan_id
            plan = await self.load_plan(new_plan_id)

            overrides = patch.get("limits")
            if overrides is None:
                overrides = {} if plan_changed else (current.limits or {})
            patch["limits"] = merge_limits(plan.limits if plan else {}, overrides)

            if plan_changed:
                for field, value in self._plan_fields(plan).items():
                    if patch.get(field) is None:
                        patch[field] = value

        if "start_date" in patch or "end_date" in patch:
            start = patch.get("start_date", current.start_date)
            end = patch.get("end_date", current.end_date)
            self._check_window(parse_timestamp(start), parse_timestamp(end))

        if not patch:
            return current
        return await self.subscriptions.update(subscription_id, patch)

    async def expire_if_due(self, subscription: Subscription) -> bool:
        """Persist an observed expiry once; returns True when a write happened."""
        if subscription.status == STATUS_EXPIRED:
            return False
        if derive_status(subscription, self.clock.now()) != STATUS_EXPIRED:
            return False
        await self.subscriptions.update(subscription.id, {"status": STATUS_EXPIRED})
        logger.info(
            "Subscription %s for restaurant %s expired at %s",
            subscription.id,
            subscription.restaurant_id,
            subscription.end_date,
        )
        return True

    async def sweep_expired(self, limit: Optional[int] = None) -> ExpirySweepResult:
        """Write back every expiry observed since the last sweep.

        Only rows already past their end date are read, ``limit`` at a time.
        Each expired row drops out of the active/trial filter, so the next
        page starts at the rows not yet written.
        """
        limit = limit or settings.EXPIRY_SWEEP_BATCH_SIZE
        now = self.clock.now()
        checked = 0
        expired_ids: List[int] = []
        for status in SWEEPABLE_STATUSES:
            while True:
                page = await self.subscriptions.list(status=status, limit=limit, ends_before=now)
                written = 0
                for subscription in page:
                    checked += 1
                    if await self.expire_if_due(subscription):
                        expired_ids.append(subscription.id)
                        written += 1
                # a page with no writes would be read again unchanged
                if len(page) < limit or written == 0:
                    break

        if expired_ids:
            logger.info("Expiry sweep: %d of %d subscriptions expired", len(expired_ids), checked)
        return ExpirySweepResult(checked=checked, expired=len(expired_ids), subscription_ids=expired_ids)
