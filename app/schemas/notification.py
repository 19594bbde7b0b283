"""Pydantic schemas for restaurant notifications."""

from pydantic import BaseModel
from datetime import datetime
from app.models.notification import NotificationType


class NotificationOut(BaseModel):
    """Response schema for notification."""
    id: int
    restaurant_id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
