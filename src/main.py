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
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from config.settings import settings
from src.bh_account.api.router import router as account_router
from src.bh_admin.api.router import router as admin_router
from src.bh_common.background import task_queue
from src.bh_common.database import engine
from src.bh_common.db_errors import is_timeout
from src.bh_common.errors import AppError, InternalError, ServiceBusyError
from src.bh_common.logging_config import configure_logging
from src.bh_common.redis_client import close_redis, get_redis
from src.bh_common.response import error_response
from src.bh_community.api.router import router as community_router
from src.bh_deploy.api.callback_router import router as provisioning_router
from src.bh_deploy.api.router import get_deployment_gate
from src.bh_deploy.api.router import router as bots_router
from src.bh_gateway.api.router import router as auth_router
from src.bh_gateway.middleware.rate_limit import RateLimitMiddleware
from src.bh_gateway.middleware.request_log import RequestLogMiddleware

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("bh.app")

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, open Redis, start the background queue. Shutdown: reverse."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    await task_queue.start()
    logger.info("%s started", settings.APP_NAME)
    yield
    await task_queue.stop()
    await get_deployment_gate().provisioner.aclose()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=APP_VERSION,
    lifespan=lifespan,
)

# Last added runs first: RequestLog must set request_id before the limiter answers
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


def _error_json(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc)


@app.exception_handler(DBAPIError)
async def db_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    # lock_timeout / statement_timeout: the account was busy, the caller may retry
    if is_timeout(exc):
        logger.warning("DB timeout on %s: %s", request.url.path, exc.orig)
        return _error_json(request, ServiceBusyError())
    logger.exception("Database error on %s", request.url.path)
    return _error_json(request, InternalError())


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(bots_router, prefix="/api/v1")
app.include_router(provisioning_router, prefix="/api/v1")
app.include_router(community_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": APP_VERSION}
