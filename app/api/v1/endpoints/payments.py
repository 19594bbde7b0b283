"""Manual payment submission and super-admin review."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_payment_workflow
from app.schemas.payment import (
    ApprovalOut,
    PaymentDecision,
    PaymentOut,
    PaymentStats,
    PaymentStatus,
    PaymentSubmit,
)
from app.schemas.subscription import SubscriptionOut
from app.services.payment_approval import PaymentApprovalWorkflow

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=PaymentOut, status_code=201)
async def submit_payment(
    body: PaymentSubmit,
    workflow: PaymentApprovalWorkflow = Depends(get_payment_workflow),
):
    """Submit a manual payment; refused with 409 while a subscription is active."""
    return await workflow.submit_payment(body)


@router.get("/", response_model=List[PaymentOut])
async def list_payments(
    status: Optional[PaymentStatus] = Query(None),
    workflow: PaymentApprovalWorkflow = Depends(get_payment_workflow),
):
    return await workflow.list_payments(status)


@router.get("/stats", response_model=PaymentStats)
async def payment_stats(
    workflow: PaymentApprovalWorkflow = Depends(get_payment_workflow),
):
    return await workflow.get_payment_stats()


@router.post("/{payment_id}/approve", response_model=ApprovalOut)
async def approve_payment(
    payment_id: int,
    body: Optional[PaymentDecision] = None,
    workflow: PaymentApprovalWorkflow = Depends(get_payment_workflow),
):
    """Approve a pending payment and restart the subscription window.

    If activation fails after the payment is approved the response is 207
    with both the payment and the activation error.
    """
    notes = body.admin_notes if body else ""
    payment, subscription = await workflow.approve(payment_id, notes)
    return ApprovalOut(
        payment=PaymentOut.model_validate(payment),
        subscription=SubscriptionOut.model_validate(subscription),
    )


@router.post("/{payment_id}/reject", response_model=PaymentOut)
async def reject_payment(
    payment_id: int,
    body: Optional[PaymentDecision] = None,
    workflow: PaymentApprovalWorkflow = Depends(get_payment_workflow),
):
    notes = body.admin_notes if body else ""
    return await workflow.reject(payment_id, notes)
