"""Restaurant (tenant) model.

Only the fields the subscription core reads or writes live here; menu
content belongs to the menu tables in app.models.menu.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    owner_email = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    subscriptions = relationship("Subscription", back_populates="restaurant")
    payment_requests = relationship("PaymentRequest", back_populates="restaurant")
    notifications = relationship("RestaurantNotification", back_populates="restaurant")
