"""Pydantic schemas for usage snapshots and limit checks."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, AliasChoices


class UsageSnapshot(BaseModel):
    """Current counts of a restaurant's resources."""
    products: int = Field(0, validation_alias=AliasChoices("products", "menuItems", "menu_items"))
    categories: int = 0
    branches: int = 0
    orders: int = 0

    class Config:
        extra = "ignore"


class LimitCheckResult(BaseModel):
    allowed: bool
    remaining: int
    reason: str
    current_count: Optional[int] = None
    limit: Optional[Any] = None


class UsageSummary(BaseModel):
    """Plan, current usage and effective caps side by side."""
    plan: Dict[str, Any]
    usage: Dict[str, int]
    limits: Dict[str, Any]


class CanAddItemResponse(BaseModel):
    item_type: str
    allowed: bool
    remaining: int
    in_trial: bool
