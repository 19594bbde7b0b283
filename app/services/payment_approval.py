"""Manual payment requests and their super-admin approval.

PaymentRequest.status moves pending -> approved or pending -> rejected;
both are terminal. Approval writes the payment first and only then
activates the subscription, so a failure in between leaves the payment
approved and the subscription untouched.
"""

import logging
from typing import Any, Dict, List, NamedTuple, Optional

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.exceptions import (
    InvalidTransitionError,
    PartialSuccessError,
    PaymentBlockedError,
    PaymentNotFoundError,
    PlanNotFoundError,
    ValidationError,
)
from app.models.notification import NotificationType
from app.models.payment_request import PaymentRequest
from app.models.subscription import Subscription
from app.schemas.common import normalize_plan_id
from app.schemas.payment import PaymentStats, PaymentSubmit
from app.services.subscription_lifecycle import Notifier, SubscriptionLifecycleManager
from app.stores.base import PaymentStore, PlanStore, SubscriptionStore

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


class ApprovalResult(NamedTuple):
    payment: PaymentRequest
    subscription: Subscription


class PaymentApprovalWorkflow:
    def __init__(
        self,
        payments: PaymentStore,
        subscriptions: SubscriptionStore,
        plans: PlanStore,
        lifecycle: SubscriptionLifecycleManager,
        clock: Clock = system_clock,
        notifier: Optional[Notifier] = None,
    ):
        self.payments = payments
        self.subscriptions = subscriptions
        self.plans = plans
        self.lifecycle = lifecycle
        self.clock = clock
        self.notifier = notifier

    async def _notify(self, restaurant_id: int, title: str, message: str) -> None:
        if self.notifier is None:
            return
        await self.notifier(restaurant_id, title, message, NotificationType.PAYMENT)

    async def _load_pending(self, payment_id: int, target: str) -> PaymentRequest:
        payment = await self.payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        if payment.status != STATUS_PENDING:
            raise InvalidTransitionError(
                "payment", payment.status, target, context={"payment_id": payment_id}
            )
        return payment

    async def submit_payment(self, request: PaymentSubmit) -> PaymentRequest:
        """Record a pending payment; refused while the restaurant is actively subscribed."""
        if await self.lifecycle.has_blocking_active_subscription(request.restaurant_id):
            logger.warning(
                "Payment submission refused for restaurant %s: active subscription exists",
                request.restaurant_id,
            )
            raise PaymentBlockedError(request.restaurant_id)

        plan_id = normalize_plan_id(request.plan_id)
        if plan_id == 0:
            raise ValidationError("A payment must reference a plan", field="plan_id", value=request.plan_id)
        plan = await self.plans.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)

        payment = await self.payments.create({
            "restaurant_id": request.restaurant_id,
            "user_id": request.user_id,
            "plan_id": plan.id,
            "plan_name": plan.name,
            "amount": plan.price,
            "payment_method": dict(request.payment_method),
            "status": STATUS_PENDING,
            "created_at": self.clock.now(),
        })
        logger.info(
            "Payment request %s submitted for restaurant %s (plan=%s, amount=%s)",
            payment.id, payment.restaurant_id, plan.id, payment.amount,
        )
        return payment

    async def approve(self, payment_id: int, admin_notes: str = "") -> ApprovalResult:
        """Approve a pending payment and start a fresh validity window on its plan.

        Raises PartialSuccessError when the payment was approved but the
        subscription could not be activated.
        """
        await self._load_pending(payment_id, STATUS_APPROVED)

        # committed before any subscription write
        payment = await self.payments.update_status(
            payment_id, STATUS_APPROVED, admin_notes, self.clock.now()
        )
        logger.info("Payment %s approved for restaurant %s", payment.id, payment.restaurant_id)

        try:
            plan_id = normalize_plan_id(payment.plan_id)
            if plan_id == 0:
                raise ValidationError("Approved payment does not reference a plan", field="plan_id", value=payment.plan_id)
            plan = await self.plans.get_plan(plan_id)
            if plan is None:
                raise PlanNotFoundError(plan_id)

            current = await self.subscriptions.get_by_restaurant(payment.restaurant_id)
            subscription = await self.lifecycle.activate(
                current,
                payment.restaurant_id,
                plan,
                restart_window_days=settings.PAYMENT_APPROVAL_VALIDITY_DAYS,
            )
        except Exception as e:
            logger.error(
                "Payment %s approved but activating restaurant %s failed: %s",
                payment.id, payment.restaurant_id, e,
                exc_info=True,
            )
            raise PartialSuccessError(payment, e) from e

        await self._notify(
            payment.restaurant_id,
            "Payment approved",
            f"Your payment for the {payment.plan_name or 'selected'} plan was approved.",
        )
        return ApprovalResult(payment, subscription)

    async def reject(self, payment_id: int, admin_notes: str = "") -> PaymentRequest:
        await self._load_pending(payment_id, STATUS_REJECTED)
        payment = await self.payments.update_status(
            payment_id, STATUS_REJECTED, admin_notes, self.clock.now()
        )
        logger.info("Payment %s rejected for restaurant %s", payment.id, payment.restaurant_id)

        message = f"Your payment for the {payment.plan_name or 'selected'} plan was rejected."
        if admin_notes:
            message += f" Reason: {admin_notes}"
        await self._notify(payment.restaurant_id, "Payment rejected", message)
        return payment

    async def list_payments(self, status: Optional[str] = None) -> List[PaymentRequest]:
        return await self.payments.list(status=status)

    async def get_payment_stats(self) -> PaymentStats:
        payments = await self.payments.list()
        counts: Dict[str, int] = {STATUS_PENDING: 0, STATUS_APPROVED: 0, STATUS_REJECTED: 0}
        total_amount: Any = 0
        for payment in payments:
            counts[payment.status] = counts.get(payment.status, 0) + 1
            if payment.status == STATUS_APPROVED:
                total_amount += payment.amount or 0
        return PaymentStats(
            total=len(payments),
            pending=counts[STATUS_PENDING],
            approved=counts[STATUS_APPROVED],
            rejected=counts[STATUS_REJECTED],
            total_amount=float(total_amount),
        )
