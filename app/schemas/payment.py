"""Pydantic schemas and the upstream adapter for manual payment requests."""

from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, AliasChoices, field_validator

from app.schemas.common import plan_id_validator, timestamp_validator
from app.schemas.subscription import SubscriptionOut

PaymentStatus = Literal["pending", "approved", "rejected"]


class PaymentData(BaseModel):
    """Canonical payment request fields, accepted from any upstream spelling."""
    id: Optional[int] = None
    restaurant_id: Optional[int] = Field(None, validation_alias=AliasChoices("restaurant_id", "restaurantId"))
    user_id: Optional[int] = Field(None, validation_alias=AliasChoices("user_id", "userId"))
    plan_id: int = Field(0, validation_alias=AliasChoices("plan_id", "planId"))
    plan_name: Optional[str] = Field(None, validation_alias=AliasChoices("plan_name", "planName"))
    amount: float = 0
    payment_method: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("payment_method", "paymentMethod")
    )
    status: str = "pending"
    admin_notes: Optional[str] = Field(None, validation_alias=AliasChoices("admin_notes", "adminNotes"))
    created_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    processed_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("processed_at", "processedAt"))

    class Config:
        extra = "ignore"
        from_attributes = True

    @field_validator("plan_id", mode="before")
    @classmethod
    def _plan_id(cls, v):
        return plan_id_validator(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return 0 if v in (None, "") else v

    @field_validator("payment_method", mode="before")
    @classmethod
    def _payment_method(cls, v):
        if not v:
            return {}
        if isinstance(v, str):
            return {"name": v}
        return v

    @field_validator("created_at", "processed_at", mode="before")
    @classmethod
    def _timestamps(cls, v):
        return timestamp_validator(v)


def normalize_payment(raw: Any) -> Optional[PaymentData]:
    if raw is None or raw is False:
        return None
    if isinstance(raw, PaymentData):
        return raw
    return PaymentData.model_validate(raw, from_attributes=not isinstance(raw, dict))


class PaymentSubmit(BaseModel):
    """Request schema for a restaurant admin's manual payment."""
    restaurant_id: int = Field(validation_alias=AliasChoices("restaurant_id", "restaurantId"))
    user_id: Optional[int] = Field(None, validation_alias=AliasChoices("user_id", "userId"))
    plan_id: int = Field(validation_alias=AliasChoices("plan_id", "planId"))
    payment_method: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("payment_method", "paymentMethod")
    )

    @field_validator("plan_id", mode="before")
    @classmethod
    def _plan_id(cls, v):
        return plan_id_validator(v)


class PaymentDecision(BaseModel):
    """Super-admin approve/reject body."""
    admin_notes: str = Field("", validation_alias=AliasChoices("admin_notes", "adminNotes"))


class PaymentOut(BaseModel):
    id: int
    restaurant_id: int
    user_id: Optional[int] = None
    plan_id: int
    plan_name: Optional[str] = None
    amount: float
    payment_method: Dict[str, Any] = Field(default_factory=dict)
    status: PaymentStatus
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("payment_method", mode="before")
    @classmethod
    def _payment_method(cls, v):
        return v or {}


class ApprovalOut(BaseModel):
    payment: PaymentOut
    subscription: SubscriptionOut


class PartialApprovalOut(BaseModel):
    """Body of a 207 response: the payment is approved, activation is not."""
    detail: str
    payment: PaymentOut
    activation_error: str


class PaymentStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    total_amount: float = Field(description="Sum of approved payment amounts")
