from fastapi import APIRouter
from app.api.v1.endpoints import plans, restaurants, subscriptions, payments

api_router = APIRouter()
api_router.include_router(plans.router, prefix="/plans", tags=["plans"])
api_router.include_router(restaurants.router, prefix="/restaurants", tags=["restaurants"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
