"""Usage limit checks.

These checks gate UI actions; they are advisory, not a security boundary.
Every public coroutine here fails closed: on any error it reports "not
allowed" instead of raising into the caller.
"""

import logging
from typing import Any, Dict, Optional

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.limits import (
    FEATURE_FLAG_KEYS,
    UNLIMITED,
    USAGE_FIELDS,
    is_unlimited,
    resolve_limit_key,
)
from app.core.status import STATUS_ACTIVE, derive_status
from app.models.subscription import Subscription
from app.schemas.usage import LimitCheckResult, UsageSnapshot, UsageSummary
from app.services.subscription_lifecycle import effective_limits_for
from app.stores.base import PlanStore, SubscriptionStore, UsageCounter

logger = logging.getLogger(__name__)

REASON_OK = "OK"
REASON_LIMIT_REACHED = "Limit reached"
REASON_NO_SUBSCRIPTION = "No subscription found"
REASON_NOT_ACTIVE = "Subscription not active"
REASON_ERROR = "Error checking limit"


def trial_limits() -> Dict[str, int]:
    """Caps applied while a restaurant has no active subscription."""
    return {
        "maxProducts": settings.TRIAL_MAX_PRODUCTS,
        "maxCategories": settings.TRIAL_MAX_CATEGORIES,
        "maxBranches": settings.TRIAL_MAX_BRANCHES,
        "maxUsers": settings.TRIAL_MAX_USERS,
    }


def evaluate_limit(limit: Any, current_count: Optional[int]) -> LimitCheckResult:
    """Compare a count against one effective cap (-1 = unlimited)."""
    count = int(current_count or 0)
    if is_unlimited(limit):
        return LimitCheckResult(
            allowed=True, remaining=UNLIMITED, reason=REASON_OK, current_count=count, limit=UNLIMITED
        )
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        raise ValidationError("Limit is not a numeric cap", field="limit", value=limit)
    allowed = count < limit
    return LimitCheckResult(
        allowed=allowed,
        remaining=max(0, int(limit) - count),
        reason=REASON_OK if allowed else REASON_LIMIT_REACHED,
        current_count=count,
        limit=limit,
    )


def _count_for(snapshot: UsageSnapshot, limit_key: str) -> int:
    """Count for a limit key; keys with no counted table need an explicit count."""
    field = USAGE_FIELDS.get(limit_key)
    if field is None:
        raise ValidationError(
            f"No usage count for '{limit_key}'; pass current_count", field="current_count", value=None
        )
    return getattr(snapshot, field)


class UsageChecker:
    def __init__(
        self,
        subscriptions: SubscriptionStore,
        plans: PlanStore,
        usage_counter: UsageCounter,
        clock: Clock = system_clock,
    ):
        self.subscriptions = subscriptions
        self.plans = plans
        self.usage_counter = usage_counter
        self.clock = clock

    async def check_limit(
        self,
        subscription: Optional[Subscription],
        limit_type: str,
        current_count: Optional[int],
    ) -> LimitCheckResult:
        """Decide whether one more resource of ``limit_type`` may be created."""
        try:
            if not subscription:
                return LimitCheckResult(allowed=False, remaining=0, reason=REASON_NO_SUBSCRIPTION)
            if derive_status(subscription, self.clock.now()) != STATUS_ACTIVE:
                return LimitCheckResult(allowed=False, remaining=0, reason=REASON_NOT_ACTIVE)

            key = resolve_limit_key(limit_type)
            limits = await effective_limits_for(self.plans, subscription)
            if key not in limits:
                raise ValidationError(f"Unknown limit type '{limit_type}'", field="limit_type", value=limit_type)
            return evaluate_limit(limits[key], current_count)
        except Exception as e:
            logger.warning("Limit check for %s failed: %s", limit_type, e)
            return LimitCheckResult(allowed=False, remaining=0, reason=REASON_ERROR)

    async def check_restaurant_limit(
        self,
        restaurant_id: int,
        limit_type: str,
        current_count: Optional[int] = None,
    ) -> LimitCheckResult:
        """check_limit for a restaurant, counting current usage when no count is given."""
        try:
            subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
            if current_count is None and subscription:
                snapshot = await self.usage_counter.get_usage_snapshot(restaurant_id)
                current_count = _count_for(snapshot, resolve_limit_key(limit_type))
        except Exception as e:
            logger.warning("Limit check for restaurant %s failed: %s", restaurant_id, e)
            return LimitCheckResult(allowed=False, remaining=0, reason=REASON_ERROR)
        return await self.check_limit(subscription, limit_type, current_count)

    async def is_in_trial(self, restaurant_id: int) -> bool:
        """True when the restaurant has no subscription that is active right now."""
        try:
            subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
        except Exception as e:
            logger.warning("Trial check for restaurant %s failed: %s", restaurant_id, e)
            return False
        return derive_status(subscription, self.clock.now()) != STATUS_ACTIVE

    async def _trial_check(
        self, restaurant_id: int, limit_key: str, current_count: Optional[int] = None
    ) -> Optional[LimitCheckResult]:
        limit = trial_limits().get(limit_key)
        if limit is None:
            return None
        if current_count is None:
            snapshot = await self.usage_counter.get_usage_snapshot(restaurant_id)
            current_count = _count_for(snapshot, limit_key)
        return evaluate_limit(limit, current_count)

    async def can_add_item(
        self, restaurant_id: int, item_type: str, current_count: Optional[int] = None
    ) -> bool:
        """Whether one more item of ``item_type`` fits, using trial caps when not subscribed.

        Users are not counted from the menu tables, so a user check needs
        ``current_count``; without one it fails closed.
        """
        try:
            key = resolve_limit_key(item_type)
            subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
            if derive_status(subscription, self.clock.now()) != STATUS_ACTIVE:
                result = await self._trial_check(restaurant_id, key, current_count)
                return True if result is None else result.allowed
            result = await self.check_restaurant_limit(restaurant_id, key, current_count)
            return result.allowed
        except Exception as e:
            logger.warning("can_add_item(%s, %s) failed: %s", restaurant_id, item_type, e)
            return False

    async def get_remaining_slots(
        self, restaurant_id: int, item_type: str, current_count: Optional[int] = None
    ) -> int:
        """Remaining slots for ``item_type``; -1 means unlimited."""
        try:
            key = resolve_limit_key(item_type)
            subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
            if derive_status(subscription, self.clock.now()) != STATUS_ACTIVE:
                result = await self._trial_check(restaurant_id, key, current_count)
                return 0 if result is None else result.remaining
            result = await self.check_restaurant_limit(restaurant_id, key, current_count)
            return result.remaining
        except Exception as e:
            logger.warning("get_remaining_slots(%s, %s) failed: %s", restaurant_id, item_type, e)
            return 0

    async def has_feature(self, restaurant_id: int, feature: str) -> bool:
        """True only for an enabled boolean feature on an active subscription."""
        try:
            subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
            if derive_status(subscription, self.clock.now()) != STATUS_ACTIVE:
                return False
            limits = await effective_limits_for(self.plans, subscription)
            return limits.get(feature) is True
        except Exception as e:
            logger.warning("Feature check %s for restaurant %s failed: %s", feature, restaurant_id, e)
            return False

    async def get_usage(self, restaurant_id: int) -> UsageSummary:
        """Plan, usage counts and effective caps for a restaurant dashboard."""
        try:
            subscription = await self.subscriptions.get_by_restaurant(restaurant_id)
            snapshot = await self.usage_counter.get_usage_snapshot(restaurant_id)
            limits = await effective_limits_for(self.plans, subscription)
        except Exception as e:
            logger.warning("Usage summary for restaurant %s failed: %s", restaurant_id, e)
            zeros = {field: 0 for field in USAGE_FIELDS.values()}
            return UsageSummary(plan={"id": None, "name": None, "limits": {}, "features": []}, usage=zeros, limits=dict(zeros))

        plan = {
            "id": subscription.plan_id if subscription else None,
            "name": subscription.plan_name if subscription else None,
            "limits": limits if subscription else {},
            "features": list(subscription.features or []) if subscription else [],
            "flags": {k: limits[k] for k in FEATURE_FLAG_KEYS} if subscription else {},
        }
        return UsageSummary(
            plan=plan,
            usage=snapshot.model_dump(),
            limits={field: limits[key] if subscription else 0 for key, field in USAGE_FIELDS.items()},
        )
