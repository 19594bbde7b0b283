import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import PartialSuccessError, SubscriptionServiceError
from app.schemas.payment import PartialApprovalOut, PaymentOut
from app.services.expiry_sweep import run_expiry_sweep_forever

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    sweep_task = None
    if settings.EXPIRY_SWEEP_ENABLED:
        sweep_task = asyncio.create_task(run_expiry_sweep_forever())
    yield
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task


app = FastAPI(
    title="Menu Subscriptions API",
    description="Plans, subscriptions, usage limits and manual payment approval for restaurant menus",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(PartialSuccessError)
async def partial_success_handler(request: Request, exc: PartialSuccessError):
    body = PartialApprovalOut(
        detail=exc.message,
        payment=PaymentOut.model_validate(exc.payment),
        activation_error=str(exc.activation_error),
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(SubscriptionServiceError)
async def subscription_error_handler(request: Request, exc: SubscriptionServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok", "service": "menu-subscriptions", "version": "0.1.0"}
