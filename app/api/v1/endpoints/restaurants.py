"""Per-restaurant subscription state, usage gates and lifecycle commands."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_lifecycle_manager, get_usage_checker
from app.schemas.notification import NotificationOut
from app.schemas.subscription import (
    ActivateRequest,
    ExtendRequest,
    SubscriptionOut,
    SubscriptionView,
)
from app.schemas.usage import CanAddItemResponse, LimitCheckResult, UsageSummary
from app.services.notification_service import list_notifications
from app.services.subscription_lifecycle import SubscriptionLifecycleManager
from app.services.usage import UsageChecker

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{restaurant_id}/subscription", response_model=SubscriptionView)
async def get_subscription(
    restaurant_id: int,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    """Current subscription with its derived status and effective limits."""
    return await lifecycle.describe(restaurant_id)


@router.get("/{restaurant_id}/usage", response_model=UsageSummary)
async def get_usage(
    restaurant_id: int,
    usage: UsageChecker = Depends(get_usage_checker),
):
    return await usage.get_usage(restaurant_id)


@router.get("/{restaurant_id}/limits/{limit_type}", response_model=LimitCheckResult)
async def check_limit(
    restaurant_id: int,
    limit_type: str,
    current_count: Optional[int] = Query(None, ge=0),
    usage: UsageChecker = Depends(get_usage_checker),
):
    """Whether one more item fits under the effective limit.

    Without ``current_count`` the restaurant's current usage is counted.
    """
    return await usage.check_restaurant_limit(restaurant_id, limit_type, current_count)


@router.get("/{restaurant_id}/can-add/{item_type}", response_model=CanAddItemResponse)
async def can_add(
    restaurant_id: int,
    item_type: str,
    current_count: Optional[int] = Query(None, ge=0),
    usage: UsageChecker = Depends(get_usage_checker),
):
    """Trial-aware gate for creating a product, category, branch..."""
    return CanAddItemResponse(
        item_type=item_type,
        allowed=await usage.can_add_item(restaurant_id, item_type, current_count),
        remaining=await usage.get_remaining_slots(restaurant_id, item_type, current_count),
        in_trial=await usage.is_in_trial(restaurant_id),
    )


@router.post("/{restaurant_id}/subscription/activate", response_model=SubscriptionOut)
async def activate_subscription(
    restaurant_id: int,
    body: Optional[ActivateRequest] = None,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    plan = None
    if body is not None and body.plan_id:
        plan = await lifecycle.load_plan(body.plan_id)
    current = await lifecycle.get_current(restaurant_id)
    return await lifecycle.activate(current, restaurant_id, plan)


@router.post("/{restaurant_id}/subscription/pause", response_model=SubscriptionOut)
async def pause_subscription(
    restaurant_id: int,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    current = await lifecycle.get_current(restaurant_id)
    return await lifecycle.pause(current)


@router.post("/{restaurant_id}/subscription/resume", response_model=SubscriptionOut)
async def resume_subscription(
    restaurant_id: int,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    current = await lifecycle.get_current(restaurant_id)
    return await lifecycle.resume(current)


@router.post("/{restaurant_id}/subscription/extend", response_model=SubscriptionOut)
async def extend_subscription(
    restaurant_id: int,
    body: ExtendRequest,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    current = await lifecycle.get_current(restaurant_id)
    return await lifecycle.extend_by_days(current, body.days)


@router.get("/{restaurant_id}/notifications", response_model=List[NotificationOut])
async def get_notifications(
    restaurant_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """Subscription and payment notifications, newest first."""
    return await list_notifications(db, restaurant_id, limit)
