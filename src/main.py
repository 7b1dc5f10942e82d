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
from src.dd_admin.api.router import router as admin_router
from src.dd_common.errors import AppError, InternalError
from src.dd_common.redis_client import close_redis
from src.dd_common.response import error_response
from src.dd_gateway.middleware.request_log import RequestLogMiddleware
from src.dd_round.api.router import router as round_router
from src.dd_staking.api.router import router as staking_router
from src.dependencies import close_clients, get_backend

logger = logging.getLogger("dd.request")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the storage backend. Shutdown: close clients."""
    # Startup
    await get_backend().ping()
    yield
    # Shutdown
    await close_clients()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    err = InternalError()
    resp = error_response(err.code, err.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


app.include_router(round_router, prefix="/api/v1")
app.include_router(staking_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
