"""Restaurant subscription model.

One row is "current" per restaurant by convention: callers always look up
the existing row by restaurant_id before deciding to create or update.
There is no unique constraint on restaurant_id yet, so two
concurrent approvals can still create duplicates; the newest row wins.
"""

from sqlalchemy import Column, String, Integer, DateTime, Numeric, ForeignKey
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="active", index=True)  # active, paused, expired, trial
    plan_id = Column(Integer, nullable=False, default=0)  # 0 = no plan
    plan_name = Column(String, nullable=True)
    plan_price = Column(Numeric(10, 2), nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True, index=True)
    limits = Column(JSON, nullable=True)  # effective limits at last (re)activation
    features = Column(JSON, nullable=True)  # plan features copied at (re)activation
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="subscriptions")
