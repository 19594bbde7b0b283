from sqlalchemy import Column, String, Integer, Boolean, DateTime, Numeric, Text, func
from sqlalchemy.types import JSON

from app.core.database import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="EGP")
    duration_days = Column(Integer, nullable=True)  # falls back to DEFAULT_PLAN_DURATION_DAYS
    features = Column(JSON, nullable=True)  # ["Unlimited products", ...]
    limits = Column(JSON, nullable=True)  # {"maxProducts": 50, "apiAccess": true, ...}
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
