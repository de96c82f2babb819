"""
Main FastAPI application entry point for the storefront pricing engine.

This module creates and configures the FastAPI application with the admin
routes, exception handlers, and startup/shutdown events.
"""

import logging
import os
import traceback
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from . import __version__
from .api.models import ErrorResponse, HealthCheckResponse
from .api.router import router as pricing_router
from .db.engine import dispose_engines, get_catalog_engine
from .db.init import ensure_database_directory, init_database
from .shared.dependencies import get_config, get_session_maker
from .shared.exceptions import (
    BatchCommitError,
    ConfigurationError,
    SourceFetchError,
    StorageError,
)
from .shared.logging_config import configure_structured_logging

logger = logging.getLogger(__name__)

APP_NAME = "Storefront Pricing API"
APP_VERSION = __version__
APP_DESCRIPTION = """
**Storefront Pricing API** manages catalog prices for the store admin.

- Edit margin, VAT, exchange rate and feed settings
- Sync prices and availability from the supplier price feed
- Audit and import products missing from the catalog
- Reprice the catalog and apply bulk discounts or margins
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown events."""
    config = get_config()
    configure_structured_logging(level=config.logging.level)

    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        ensure_database_directory(config.storage.db_path)
        engine = get_catalog_engine(config.storage.db_path, echo=config.storage.echo_sql)
        await init_database(engine)
    except Exception as e:
        logger.error(f"❌ Failed to initialize catalog database: {e}", exc_info=True)
        raise

    logger.info("Application startup completed")

    yield

    logger.info("Starting application shutdown")
    await dispose_engines()
    logger.info("Application shutdown completed")


app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Allow CORS origins to be configured via env var ALLOWED_ORIGINS (comma-separated)
allowed_origins_env = os.getenv("ALLOWED_ORIGINS")
allowed_origins = (
    [o.strip() for o in allowed_origins_env.split(",") if o.strip()]
    if allowed_origins_env
    else ["http://localhost:3000", "http://localhost:5173"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
)


# ================================
# EXCEPTION HANDLERS
# ================================


def _error_response(
    status_code: int, error: str, message: str, details: dict | None = None
) -> JSONResponse:
    content = ErrorResponse(
        error=error, message=message, details=details, timestamp=datetime.now(UTC)
    ).model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error format."""
    return _error_response(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with field information."""
    logger.warning(f"Validation error for {request.method} {request.url}: {exc.errors()}")
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"field_errors": field_errors},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.warning(f"Configuration error on {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "CONFIGURATION_ERROR",
        str(exc),
        {"setting": exc.setting} if exc.setting else None,
    )


@app.exception_handler(SourceFetchError)
async def source_fetch_error_handler(request: Request, exc: SourceFetchError):
    logger.error(f"Upstream fetch failed on {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_502_BAD_GATEWAY,
        "UPSTREAM_ERROR",
        str(exc),
        {"url": exc.url, "status_code": exc.status_code},
    )


@app.exception_handler(BatchCommitError)
async def batch_commit_error_handler(request: Request, exc: BatchCommitError):
    logger.error(f"Batch commit failed on {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "BATCH_COMMIT_ERROR",
        str(exc),
        {
            "batch_index": exc.batch_index,
            "total_batches": exc.total_batches,
            "committed_items": exc.committed_items,
            "total_items": exc.total_items,
        },
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "STORAGE_ERROR",
        str(exc),
        {"operation": exc.operation},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    logger.error(traceback.format_exc())
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        {"exception_type": type(exc).__name__},
    )


# ================================
# MIDDLEWARE
# ================================


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log all requests and responses."""
    start_time = datetime.now(UTC)
    response = await call_next(request)
    duration = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )
    return response


# ================================
# CORE ROUTES
# ================================


@app.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check",
)
async def health_check(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
):
    """Report database connectivity."""
    checks = {}
    overall_status = "healthy"

    try:
        async with session_maker() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy"}
    except Exception as e:
        checks["database"] = {"status": "unhealthy", "error": str(e)}
        overall_status = "unhealthy"

    return HealthCheckResponse(
        status=overall_status,
        timestamp=datetime.now(UTC),
        version=APP_VERSION,
        checks=checks,
    )


app.include_router(pricing_router, tags=["pricing"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront_pricing.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=False,
    )
