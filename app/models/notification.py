from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base


class NotificationType(str, enum.Enum):
    SYSTEM = "system"
    SUBSCRIPTION = "subscription"
    PAYMENT = "payment"


class RestaurantNotification(Base):
    __tablename__ = "restaurant_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    restaurant = relationship("Restaurant", back_populates="notifications")
