"""Subscription plan catalogue (read-only)."""

from typing import List
from fastapi import APIRouter, Depends

from app.core.dependencies import get_plan_store
from app.core.exceptions import PlanNotFoundError
from app.schemas.plan import PlanOut
from app.stores.sql import SqlPlanStore

router = APIRouter()


@router.get("/", response_model=List[PlanOut])
async def list_plans(plans: SqlPlanStore = Depends(get_plan_store)):
    """List every plan, cheapest first."""
    return [PlanOut.model_validate(plan) for plan in await plans.list_plans()]


@router.get("/{plan_id}", response_model=PlanOut)
async def get_plan(plan_id: int, plans: SqlPlanStore = Depends(get_plan_store)):
    plan = await plans.get_plan(plan_id)
    if plan is None:
        raise PlanNotFoundError(plan_id)
    return PlanOut.model_validate(plan)
