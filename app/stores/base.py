"""Store contracts the subscription core depends on.

The lifecycle manager, usage checker and payment workflow only talk to
these protocols; app.stores.sql provides the SQLAlchemy implementations.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UpstreamError
from app.models.payment_request import PaymentRequest
from app.models.restaurant import Restaurant
from app.models.subscription import Subscription
from app.schemas.plan import PlanData
from app.schemas.usage import UsageSnapshot

logger = logging.getLogger(__name__)


class PlanStore(Protocol):
    async def get_plan(self, plan_id: int) -> Optional[PlanData]: ...

    async def list_plans(self) -> List[PlanData]: ...


class SubscriptionStore(Protocol):
    async def get(self, subscription_id: int) -> Optional[Subscription]: ...

    async def get_by_restaurant(self, restaurant_id: int) -> Optional[Subscription]: ...

    async def create(self, data: Dict[str, Any]) -> Subscription: ...

    async def update(self, subscription_id: int, patch: Dict[str, Any]) -> Subscription: ...

    async def list(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        ends_before: Optional[datetime] = None,
    ) -> List[Subscription]: ...


class PaymentStore(Protocol):
    async def get(self, payment_id: int) -> Optional[PaymentRequest]: ...

    async def create(self, data: Dict[str, Any]) -> PaymentRequest: ...

    async def list(self, status: Optional[str] = None) -> List[PaymentRequest]: ...

    async def update_status(
        self, payment_id: int, status: str, notes: str, processed_at: datetime
    ) -> PaymentRequest: ...


class RestaurantStore(Protocol):
    async def get(self, restaurant_id: int) -> Optional[Restaurant]: ...

    async def list(self) -> List[Restaurant]: ...

    async def set_active(self, restaurant_id: int, active: bool) -> None: ...


class UsageCounter(Protocol):
    async def get_usage_snapshot(self, restaurant_id: int) -> UsageSnapshot: ...


@asynccontextmanager
async def store_call(db: AsyncSession, operation: str):
    """Roll back and re-raise storage failures as UpstreamError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Store operation %s failed: %s", operation, e)
        await db.rollback()
        raise UpstreamError(operation, e) from e
