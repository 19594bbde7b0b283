"""FastAPI dependencies wiring the stores and services to a request session.

Authentication and role checks happen in front of this service; routes here
assume the caller has already been authorized.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.database import get_db
from app.services.notification_service import session_notifier
from app.services.payment_approval import PaymentApprovalWorkflow
from app.services.subscription_lifecycle import SubscriptionLifecycleManager
from app.services.usage import UsageChecker
from app.stores.sql import (
    SqlPaymentStore,
    SqlPlanStore,
    SqlRestaurantStore,
    SqlSubscriptionStore,
    SqlUsageCounter,
)


def get_clock() -> Clock:
    """Overridden in tests with a FrozenClock."""
    return system_clock


def get_plan_store(db: AsyncSession = Depends(get_db)) -> SqlPlanStore:
    return SqlPlanStore(db)


def get_lifecycle_manager(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> SubscriptionLifecycleManager:
    return SubscriptionLifecycleManager(
        plans=SqlPlanStore(db),
        subscriptions=SqlSubscriptionStore(db),
        restaurants=SqlRestaurantStore(db),
        clock=clock,
        notifier=session_notifier(db),
    )


def get_usage_checker(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> UsageChecker:
    return UsageChecker(
        subscriptions=SqlSubscriptionStore(db),
        plans=SqlPlanStore(db),
        usage_counter=SqlUsageCounter(db),
        clock=clock,
    )


def get_payment_workflow(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    lifecycle: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> PaymentApprovalWorkflow:
    return PaymentApprovalWorkflow(
        payments=SqlPaymentStore(db),
        subscriptions=lifecycle.subscriptions,
        plans=lifecycle.plans,
        lifecycle=lifecycle,
        clock=clock,
        notifier=session_notifier(db),
    )
