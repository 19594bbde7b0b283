"""SQLAlchemy implementations of the store contracts.

Every write commits before returning, so a caller that awaited a write
knows it is durable before issuing the next one.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    NoSubscriptionError,
    PaymentNotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)
from app.models.menu import Branch, Category, Order, Product
from app.models.notification import RestaurantNotification  # noqa: F401  registers Restaurant.notifications
from app.models.payment_request import PaymentRequest
from app.models.restaurant import Restaurant
from app.models.subscription import Subscription
from app.models.subscription_plan import SubscriptionPlan
from app.schemas.payment import normalize_payment
from app.schemas.plan import PlanData, normalize_plan
from app.schemas.subscription import normalize_subscription
from app.schemas.usage import UsageSnapshot
from app.stores.base import store_call

logger = logging.getLogger(__name__)


class SqlPlanStore:
    """Plan catalogue reads; rows leave the store already adapted to PlanData."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_plan(self, plan_id: int) -> Optional[PlanData]:
        if not plan_id:
            return None
        async with store_call(self.db, "plans.get"):
            result = await self.db.execute(select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id))
            return normalize_plan(result.scalar_one_or_none())

    async def list_plans(self) -> List[PlanData]:
        async with store_call(self.db, "plans.list"):
            result = await self.db.execute(select(SubscriptionPlan).order_by(SubscriptionPlan.price, SubscriptionPlan.id))
            return [normalize_plan(plan) for plan in result.scalars().all()]


def _adapt(adapter, data: Any, kind: str) -> Dict[str, Any]:
    """Fold an upstream payload into the column names it sets."""
    try:
        adapted = adapter(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {kind} payload: {e}")
    if adapted is None:
        return {}
    return adapted.model_dump(exclude_unset=True, exclude={"id"})


class SqlSubscriptionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, subscription_id: int) -> Optional[Subscription]:
        async with store_call(self.db, "subscriptions.get"):
            result = await self.db.execute(select(Subscription).where(Subscription.id == subscription_id))
            return result.scalar_one_or_none()

    async def get_by_restaurant(self, restaurant_id: int) -> Optional[Subscription]:
        """Return the current subscription: the newest row for the restaurant."""
        async with store_call(self.db, "subscriptions.get_by_restaurant"):
            result = await self.db.execute(
                select(Subscription)
                .where(Subscription.restaurant_id == restaurant_id)
                .order_by(Subscription.created_at.desc(), Subscription.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def create(self, data: Dict[str, Any]) -> Subscription:
        """Insert a subscription from canonical or upstream (camelCase) fields."""
        fields = _adapt(normalize_subscription, data, "subscription")
        async with store_call(self.db, "subscriptions.create"):
            subscription = Subscription(**fields)
            self.db.add(subscription)
            await self.db.commit()
            await self.db.refresh(subscription)
            logger.info(
                "Created subscription %s for restaurant %s (plan=%s, status=%s)",
                subscription.id,
                subscription.restaurant_id,
                subscription.plan_id,
                subscription.status,
            )
            return subscription

    async def update(self, subscription_id: int, patch: Dict[str, Any]) -> Subscription:
        patch = _adapt(normalize_subscription, patch, "subscription")
        subscription = await self.get(subscription_id)
        if subscription is None:
            raise NoSubscriptionError(subscription_id=subscription_id)
        async with store_call(self.db, "subscriptions.update"):
            for field, value in patch.items():
                setattr(subscription, field, value)
            await self.db.commit()
            await self.db.refresh(subscription)
            logger.info("Updated subscription %s: %s", subscription_id, sorted(patch))
            return subscription

    async def list(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        ends_before: Optional[datetime] = None,
    ) -> List[Subscription]:
        """List subscriptions, newest first within each restaurant.

        With ``ends_before`` only rows whose end date is at or before that
        instant are returned, oldest end date first, so a limited read picks
        the rows that are due rather than the first rows by restaurant.
        """
        if ends_before is not None:
            query = (
                select(Subscription)
                .where(Subscription.end_date.is_not(None), Subscription.end_date <= ends_before)
                .order_by(Subscription.end_date, Subscription.id)
            )
        else:
            query = select(Subscription).order_by(
                Subscription.restaurant_id, Subscription.created_at.desc(), Subscription.id.desc()
            )
        if status:
            query = query.where(Subscription.status == status)
        if limit:
            query = query.limit(limit)
        async with store_call(self.db, "subscriptions.list"):
            result = await self.db.execute(query)
            return list(result.scalars().all())


class SqlPaymentStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, payment_id: int) -> Optional[PaymentRequest]:
        async with store_call(self.db, "payments.get"):
            result = await self.db.execute(select(PaymentRequest).where(PaymentRequest.id == payment_id))
            return result.scalar_one_or_none()

    async def create(self, data: Dict[str, Any]) -> PaymentRequest:
        fields = _adapt(normalize_payment, data, "payment")
        async with store_call(self.db, "payments.create"):
            payment = PaymentRequest(**fields)
            self.db.add(payment)
            await self.db.commit()
            await self.db.refresh(payment)
            return payment

    async def list(self, status: Optional[str] = None) -> List[PaymentRequest]:
        query = select(PaymentRequest).order_by(PaymentRequest.created_at.desc(), PaymentRequest.id.desc())
        if status:
            query = query.where(PaymentRequest.status == status)
        async with store_call(self.db, "payments.list"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def update_status(
        self, payment_id: int, status: str, notes: str, processed_at: datetime
    ) -> PaymentRequest:
        payment = await self.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        async with store_call(self.db, "payments.update_status"):
            payment.status = status
            payment.admin_notes = notes
            payment.processed_at = processed_at
            await self.db.commit()
            await self.db.refresh(payment)
            return payment


class SqlRestaurantStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, restaurant_id: int) -> Optional[Restaurant]:
        async with store_call(self.db, "restaurants.get"):
            result = await self.db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
            return result.scalar_one_or_none()

    async def list(self) -> List[Restaurant]:
        async with store_call(self.db, "restaurants.list"):
            result = await self.db.execute(select(Restaurant).order_by(Restaurant.id))
            return list(result.scalars().all())

    async def set_active(self, restaurant_id: int, active: bool) -> None:
        restaurant = await self.get(restaurant_id)
        if restaurant is None:
            raise RestaurantNotFoundError(restaurant_id)
        if restaurant.is_active == active:
            return
        async with store_call(self.db, "restaurants.set_active"):
            restaurant.is_active = active
            await self.db.commit()
            logger.info("Restaurant %s active flag set to %s", restaurant_id, active)


class SqlUsageCounter:
    """Counts menu rows per restaurant to build a UsageSnapshot."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model, restaurant_id: int) -> int:
        result = await self.db.execute(
            select(func.count(model.id)).where(model.restaurant_id == restaurant_id)
        )
        return result.scalar_one()

    async def get_usage_snapshot(self, restaurant_id: int) -> UsageSnapshot:
        async with store_call(self.db, "usage.snapshot"):
            return UsageSnapshot(
                products=await self._count(Product, restaurant_id),
                categories=await self._count(Category, restaurant_id),
                branches=await self._count(Branch, restaurant_id),
                orders=await self._count(Order, restaurant_id),
            )
