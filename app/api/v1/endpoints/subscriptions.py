"""Super-admin subscription management."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_lifecycle_manager
from app.schemas.subscription import (
    ExpirySweepResult,
    StoredStatus,
    SubscriptionCreate,
    SubscriptionOut,
    SubscriptionOverview,
    SubscriptionUpdate,
)
from app.services.subscription_lifecycle import SubscriptionLifecycleManager

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[SubscriptionOut])
async def list_subscriptions(
    status: Optional[StoredStatus] = Query(None),
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    """List subscriptions, optionally filtered by stored status."""
    return await lifecycle.list_subscriptions(status)


@router.get("/overview", response_model=SubscriptionOverview)
async def subscriptions_overview(
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    return await lifecycle.overview()


@router.post("/", response_model=SubscriptionOut, status_code=201)
async def create_subscription(
    body: SubscriptionCreate,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    """Start a restaurant's first subscription; 409 when it already has one."""
    return await lifecycle.create(
        body.restaurant_id,
        body.plan_id,
        limits=body.limits,
        features=body.features,
    )


@router.patch("/{subscription_id}", response_model=SubscriptionOut)
async def update_subscription(
    subscription_id: int,
    body: SubscriptionUpdate,
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    """Patch a subscription; changing plan_id or limits re-merges limits."""
    return await lifecycle.update(subscription_id, body)


@router.post("/sweep-expired", response_model=ExpirySweepResult)
async def sweep_expired(
    limit: Optional[int] = Query(None, ge=1),
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
):
    """Persist every expiry observed since the last sweep."""
    return await lifecycle.sweep_expired(limit)
