"""Pydantic schemas and the upstream adapter for subscription plans."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, AliasChoices, field_validator

from app.core.config import settings


class PlanData(BaseModel):
    """Canonical plan fields, accepted from any upstream spelling."""
    id: int
    name: str = ""
    description: Optional[str] = None
    price: float = 0
    currency: str = Field(None, validate_default=True)
    duration_days: Optional[int] = Field(
        None, validation_alias=AliasChoices("duration_days", "durationDays", "duration")
    )
    features: List[Any] = Field(default_factory=list)
    limits: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))
    created_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))

    class Config:
        extra = "ignore"
        from_attributes = True

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return 0 if v in (None, "") else v

    @field_validator("currency", mode="before")
    @classmethod
    def _currency(cls, v):
        return v or settings.DEFAULT_CURRENCY

    @field_validator("duration_days", mode="before")
    @classmethod
    def _duration(cls, v):
        return None if v in (None, "", 0, "0") else v

    @field_validator("limits", mode="before")
    @classmethod
    def _limits(cls, v):
        return v or {}

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v):
        return list(v or [])


def normalize_plan(raw: Any) -> Optional[PlanData]:
    """Adapt a plan row or upstream payload; the plan store hands out nothing else."""
    if raw is None or raw is False:
        return None
    if isinstance(raw, PlanData):
        return raw
    return PlanData.model_validate(raw, from_attributes=not isinstance(raw, dict))


class PlanOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    currency: str
    duration_days: Optional[int] = None
    features: List[Any] = Field(default_factory=list)
    limits: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v):
        return v or []

    @field_validator("limits", mode="before")
    @classmethod
    def _limits(cls, v):
        return v or {}
