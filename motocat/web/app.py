"""FastAPI application for the Motocat component assignment API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from motocat import __version__
from motocat.config import get_config
from motocat.core.logging import configure_logging
from motocat.db.connection import close_db
from motocat.errors import (
    ConflictError,
    InvalidWindowError,
    NotFound,
    StoreError,
    UsageBlockedError,
)
from motocat.web.dependencies import shutdown_service
from motocat.web.routes import assignments, components

logger = structlog.get_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        logger.info("request_completed", status_code=response.status_code)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Pending invalidations must land before the engine goes away
    await shutdown_service()
    await close_db()


# Exception Handlers


async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "entity": exc.entity, "key": str(exc.key)},
    )


async def usage_blocked_handler(request: Request, exc: UsageBlockedError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "usage": exc.report.model_dump(mode="json")},
    )


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("store_error", operation=exc.operation, key=str(exc.key), error=str(exc))
    return JSONResponse(status_code=503, content={"detail": str(exc)})


async def invalid_window_handler(request: Request, exc: InvalidWindowError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Build the API app with logging, metrics and error mapping wired in."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)

    app = FastAPI(
        title="Motocat Component Assignment API",
        description="Model default components, trim overrides and effective component resolution",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Prometheus Metrics
    Instrumentator().instrument(app).expose(app)

    # ConflictError subclasses StoreError; the more specific handler wins
    app.add_exception_handler(NotFound, not_found_handler)
    app.add_exception_handler(UsageBlockedError, usage_blocked_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(InvalidWindowError, invalid_window_handler)

    app.include_router(assignments.router)
    app.include_router(components.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
