"""
Application configuration.
Values are read from environment variables, falling back to a local .env
file so development works without any exported variables.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./menu_subscriptions.db"
    LOG_LEVEL: str = "INFO"

    # Subscription lifecycle
    DEFAULT_PLAN_DURATION_DAYS: int = 30
    PAYMENT_APPROVAL_VALIDITY_DAYS: int = 30
    DEFAULT_CURRENCY: str = "EGP"

    # Periodic expiry detection
    EXPIRY_SWEEP_ENABLED: bool = False
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 60
    EXPIRY_SWEEP_BATCH_SIZE: int = 200

    # Caps applied while a restaurant has no active subscription
    TRIAL_MAX_PRODUCTS: int = 1
    TRIAL_MAX_CATEGORIES: int = 2
    TRIAL_MAX_BRANCHES: int = 2
    TRIAL_MAX_USERS: int = 1

    class Config:
        env_file = ".env"


settings = Settings()

if settings.DEFAULT_PLAN_DURATION_DAYS <= 0:
    raise ValueError(
        "DEFAULT_PLAN_DURATION_DAYS must be a positive number of days, "
        f"got {settings.DEFAULT_PLAN_DURATION_DAYS}"
    )
