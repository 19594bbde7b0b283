"""Shared test fixtures for the menu subscription service.

Uses an in-memory SQLite async engine per test so tests run without PostgreSQL.
"""

from datetime import datetime
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.core.clock import FrozenClock
from app.core.database import Base, get_db
from app.core.dependencies import get_clock
from app.main import app
from app.services.payment_approval import PaymentApprovalWorkflow
from app.services.subscription_lifecycle import SubscriptionLifecycleManager
from app.services.usage import UsageChecker
from app.stores.sql import (
    SqlPaymentStore,
    SqlPlanStore,
    SqlRestaurantStore,
    SqlSubscriptionStore,
    SqlUsageCounter,
)

# Import all models to ensure they're registered with Base.metadata
from app.models.restaurant import Restaurant
from app.models.subscription_plan import SubscriptionPlan
from app.models.subscription import Subscription  # noqa: F401
from app.models.payment_request import PaymentRequest  # noqa: F401
from app.models.notification import RestaurantNotification  # noqa: F401
from app.models.menu import Branch, Category, Order, Product  # noqa: F401


# Use aiosqlite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

NOW = datetime(2026, 1, 15, 12, 0, 0)


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database for each test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    """Direct DB session for test setup/assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest_asyncio.fixture
async def client(session_factory, clock):
    """Async HTTP test client sharing the test database and frozen clock."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def plans(db):
    """Basic (id 1), Pro (id 2) and Unlimited (id 3) plans."""
    basic = SubscriptionPlan(
        name="Basic",
        price=100,
        duration_days=30,
        features=["Digital menu"],
        limits={"maxProducts": 50, "maxCategories": 10, "maxBranches": 5, "apiAccess": False},
    )
    pro = SubscriptionPlan(
        name="Pro",
        price=250,
        duration_days=30,
        features=["Digital menu", "Analytics"],
        limits={"maxProducts": 200, "maxCategories": 40, "maxBranches": 10, "advancedAnalytics": True},
    )
    unlimited = SubscriptionPlan(
        name="Unlimited",
        price=500,
        duration_days=90,
        features=["Everything"],
        limits={"maxProducts": -1, "maxCategories": -1, "maxBranches": -1, "apiAccess": True},
    )
    db.add_all([basic, pro, unlimited])
    await db.commit()
    return {"basic": basic, "pro": pro, "unlimited": unlimited}


@pytest_asyncio.fixture
async def restaurant(db):
    restaurant = Restaurant(name="Koshary House", owner_email="owner@koshary.test")
    db.add(restaurant)
    await db.commit()
    return restaurant


@pytest.fixture
def notifications():
    """Notifier that records calls instead of writing rows."""
    sent = []

    async def notify(restaurant_id, title, message, notification_type):
        sent.append((restaurant_id, title, notification_type))

    notify.sent = sent
    return notify


@pytest.fixture
def lifecycle(db, clock, notifications):
    return SubscriptionLifecycleManager(
        plans=SqlPlanStore(db),
        subscriptions=SqlSubscriptionStore(db),
        restaurants=SqlRestaurantStore(db),
        clock=clock,
        notifier=notifications,
    )


@pytest.fixture
def usage(db, clock):
    return UsageChecker(
        subscriptions=SqlSubscriptionStore(db),
        plans=SqlPlanStore(db),
        usage_counter=SqlUsageCounter(db),
        clock=clock,
    )


@pytest.fixture
def workflow(db, clock, lifecycle, notifications):
    return PaymentApprovalWorkflow(
        payments=SqlPaymentStore(db),
        subscriptions=lifecycle.subscriptions,
        plans=lifecycle.plans,
        lifecycle=lifecycle,
        clock=clock,
        notifier=notifications,
    )
