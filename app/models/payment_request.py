"""Manual payment request submitted by a restaurant admin."""

from sqlalchemy import Column, String, Integer, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class PaymentRequest(Base):
    __tablename__ = "payment_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True)
    plan_id = Column(Integer, nullable=False, default=0)
    plan_name = Column(String, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(JSON, nullable=True)  # {"name": ..., "type": ..., "account": ...} snapshot
    status = Column(String, nullable=False, default="pending", index=True)  # pending, approved, rejected
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    processed_at = Column(DateTime, nullable=True)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="payment_requests")
