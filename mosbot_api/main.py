"""Mosbot API - FastAPI with SQLAlchemy."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from shared.clients import GatewayClient, WorkspaceClient, WorkspaceServiceError
from shared.logging_config import setup_logging

from . import routers
from .config import get_settings
from .database import dispose_engine

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    setup_logging(
        service_name=settings.service_name,
        log_format=settings.log_format,
        log_level=settings.log_level,
    )
    app.state.workspace_client = WorkspaceClient(
        settings.workspace_url,
        token=settings.workspace_token,
        timeout=settings.workspace_timeout_seconds,
        max_retries=settings.workspace_max_retries,
    )
    app.state.gateway_client = GatewayClient(
        settings.gateway_url,
        token=settings.gateway_token,
        timeout=settings.gateway_timeout_seconds,
    )
    if not settings.workspace_url:
        structlog.get_logger().warning("workspace_service_not_configured")

    yield

    await app.state.workspace_client.close()
    await app.state.gateway_client.close()
    await dispose_engine()


app = FastAPI(
    title="Mosbot API",
    description="Task management and subagent status for OpenClaw agents",
    version="0.1.0",
    lifespan=lifespan,
)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"message": message, "status": status_code}},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response("Invalid request", status.HTTP_400_BAD_REQUEST)


@app.exception_handler(WorkspaceServiceError)
async def workspace_exception_handler(request: Request, exc: WorkspaceServiceError) -> JSONResponse:
    structlog.get_logger().warning("workspace_service_error", code=exc.code, error=exc.message)
    return error_response(exc.message, int(exc.status_code))


@app.middleware("http")
async def correlation_middleware(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID", f"req_{uuid.uuid4().hex[:8]}")
    structlog.contextvars.bind_contextvars(
        correlation_id=correlation_id, method=request.method, path=request.url.path
    )

    start = time.time()
    logger = structlog.get_logger()

    try:
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        if response.status_code >= 500:  # noqa: PLR2004
            logger.error(
                "http_request_failed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
        else:
            logger.info(
                "http_request", status_code=response.status_code, duration_ms=round(duration_ms, 2)
            )

        response.headers["X-Correlation-ID"] = correlation_id
        return response
    except Exception as e:
        duration_ms = (time.time() - start) * 1000
        logger.error(
            "http_request_exception",
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=round(duration_ms, 2),
            exc_info=True,
        )
        raise
    finally:
        structlog.contextvars.clear_contextvars()


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Mosbot API",
        "version": "0.1.0",
        "description": "Task management and subagent status for OpenClaw agents",
    }


app.include_router(routers.health.router)
app.include_router(routers.openclaw.router, prefix=API_PREFIX)
app.include_router(routers.tasks.router, prefix=API_PREFIX)
