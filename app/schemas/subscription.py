"""Pydantic schemas and the upstream adapter for subscriptions.

Upstream payloads mix camelCase and snake_case for the same field
(``planId``/``plan_id``, ``endDate``/``end_date``...). ``normalize_subscription``
is the single place where those spellings are folded into canonical names.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, AliasChoices, field_validator

from app.schemas.common import plan_id_validator, timestamp_validator

StoredStatus = Literal["active", "paused", "expired", "trial"]


class SubscriptionData(BaseModel):
    """Canonical subscription fields, accepted from any upstream spelling."""
    id: Optional[int] = None
    restaurant_id: Optional[int] = Field(None, validation_alias=AliasChoices("restaurant_id", "restaurantId"))
    status: Optional[str] = None
    plan_id: int = Field(0, validation_alias=AliasChoices("plan_id", "planId"))
    plan_name: Optional[str] = Field(None, validation_alias=AliasChoices("plan_name", "planName"))
    plan_price: Optional[float] = Field(None, validation_alias=AliasChoices("plan_price", "planPrice", "price"))
    start_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    limits: Dict[str, Any] = Field(default_factory=dict)
    features: List[Any] = Field(default_factory=list)

    class Config:
        extra = "ignore"
        from_attributes = True

    @field_validator("plan_id", mode="before")
    @classmethod
    def _plan_id(cls, v):
        return plan_id_validator(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _timestamps(cls, v):
        return timestamp_validator(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        if v is None:
            return None
        text = str(v).strip().lower()
        return text or None

    @field_validator("limits", mode="before")
    @classmethod
    def _limits(cls, v):
        return v or {}

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v):
        if not v:
            return []
        if isinstance(v, dict):
            # older payloads stored features as {name: bool}
            return [name for name, enabled in v.items() if enabled]
        return list(v)


def normalize_subscription(raw: Any) -> Optional[SubscriptionData]:
    """Adapt an upstream subscription payload; null-ish payloads mean "no subscription"."""
    if raw is None or raw is False or raw == {}:
        return None
    if isinstance(raw, SubscriptionData):
        return raw
    return SubscriptionData.model_validate(raw, from_attributes=not isinstance(raw, dict))


class SubscriptionCreate(BaseModel):
    """Request schema for creating a subscription."""
    restaurant_id: int = Field(validation_alias=AliasChoices("restaurant_id", "restaurantId"))
    plan_id: int = Field(0, validation_alias=AliasChoices("plan_id", "planId"))
    limits: Optional[Dict[str, Any]] = None
    features: Optional[List[str]] = None

    @field_validator("plan_id", mode="before")
    @classmethod
    def _plan_id(cls, v):
        return plan_id_validator(v)


class SubscriptionUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""
    status: Optional[StoredStatus] = None
    plan_id: Optional[int] = Field(None, validation_alias=AliasChoices("plan_id", "planId"))
    plan_name: Optional[str] = Field(None, validation_alias=AliasChoices("plan_name", "planName"))
    plan_price: Optional[float] = Field(None, validation_alias=AliasChoices("plan_price", "planPrice"))
    start_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    limits: Optional[Dict[str, Any]] = None
    features: Optional[List[str]] = None

    @field_validator("plan_id", mode="before")
    @classmethod
    def _plan_id(cls, v):
        return plan_id_validator(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _timestamps(cls, v):
        return timestamp_validator(v)


class ActivateRequest(BaseModel):
    """Activate or renew a restaurant's subscription, optionally on another plan."""
    plan_id: Optional[int] = Field(None, validation_alias=AliasChoices("plan_id", "planId"))

    @field_validator("plan_id", mode="before")
    @classmethod
    def _plan_id(cls, v):
        return plan_id_validator(v)


class ExtendRequest(BaseModel):
    days: int


class SubscriptionOut(BaseModel):
    id: int
    restaurant_id: int
    status: str
    plan_id: int
    plan_name: Optional[str] = None
    plan_price: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limits: Dict[str, Any] = Field(default_factory=dict)
    features: List[Any] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("limits", "features", mode="before")
    @classmethod
    def _empty_json(cls, v, info):
        if v is None:
            return {} if info.field_name == "limits" else []
        return v


class SubscriptionView(BaseModel):
    """Stored record plus what it means right now."""
    subscription: Optional[SubscriptionOut] = None
    derived_status: str
    effective_limits: Dict[str, Any]
    days_until_expiry: Optional[int] = None


class SubscriptionStatusItem(BaseModel):
    subscription_id: int
    restaurant_id: int
    plan_id: int
    plan_name: Optional[str] = None
    status: str
    derived_status: str
    end_date: Optional[datetime] = None


class SubscriptionOverview(BaseModel):
    """Derived-status breakdown across all restaurants."""
    counts: Dict[str, int]
    subscriptions: List[SubscriptionStatusItem]


class ExpirySweepResult(BaseModel):
    checked: int
    expired: int
    subscription_ids: List[int]
