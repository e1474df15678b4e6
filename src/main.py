"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.ku_admin.api.router import router as admin_router
from src.ku_checkout.api.router import router as checkout_router
from src.ku_common.database import engine, ping_database
from src.ku_common.errors import AppError
from src.ku_common.redis_client import close_redis, ping_redis
from src.ku_common.response import error_response
from src.ku_gateway.api.router import router as auth_router
from src.ku_gateway.middleware.request_log import RequestLogMiddleware
from src.ku_ledger.api.router import router as ledger_router
from src.ku_settlement.api.router import router as settlement_router
from src.ku_settlement.api.router import webhook_alias_router
from src.ku_subscription.api.router import router as subscription_router
from src.ku_wallet.api.router import router as wallet_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    await ping_database()
    await ping_redis()
    logger.info("%s started", settings.APP_NAME)
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(checkout_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(webhook_alias_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(subscription_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}


@app.get("/health/ready")
async def ready() -> JSONResponse:
    """Readiness: PostgreSQL and Redis both answer."""
    checks: dict[str, str] = {}
    for name, ping in (("database", ping_database), ("redis", ping_redis)):
        try:
            await ping()
            checks[name] = "ok"
        except Exception as exc:
            logger.error("Readiness check %s failed: %s", name, exc)
            checks[name] = "unavailable"
    healthy = all(v == "ok" for v in checks.values())
    return JSONResponse(status_code=200 if healthy else 503, content=checks)
