"""
Pipeline CRM Backend - FastAPI Application Entry Point

Multi-tenant CRM API: lead pool and claim workflow, deals, proposals
and quota-metered transactional email.

Includes:
- Response compression (gzip)
- Performance monitoring middleware
- Uniform error envelope for domain, HTTP and validation errors
"""

import time
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .core.config import settings
from .core.database import engine, init_db
from .core.exceptions import CRMError
from .core.logging_config import configure_logging
from .schemas.common import ErrorResponse
from .api import (
    health_router,
    auth_router,
    leads_router,
    notifications_router,
    deals_router,
    proposals_router,
    tenants_router,
    users_router,
    tasks_router,
    contacts_router,
)


logger = logging.getLogger(__name__)

DEV_SECRET_KEY = "dev-secret-key-change-in-production"

# Error codes for plain HTTPExceptions raised by dependencies (auth, routing)
HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "permission_denied",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    429: "quota_exceeded",
}


# =============================================================================
# Performance Monitoring Middleware
# =============================================================================

class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track API response times and log slow requests.

    Logs warnings for requests exceeding 500ms.
    Adds X-Response-Time header to all responses.
    """

    SLOW_REQUEST_THRESHOLD_MS = 500

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time_ms = (time.time() - start_time) * 1000
        response.headers["X-Response-Time"] = f"{process_time_ms:.2f}ms"

        if process_time_ms > self.SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time_ms:.2f}ms"
            )
        elif settings.debug:
            logger.debug(
                f"{request.method} {request.url.path} - {process_time_ms:.2f}ms"
            )

        return response


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Configures logging, refuses insecure production secrets, and creates
    tables for local SQLite / development runs.
    """
    configure_logging()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if settings.secret_key == DEV_SECRET_KEY:
        if settings.is_production:
            logger.critical("SECRET_KEY still uses the development default. Refusing to start.")
            raise RuntimeError("Insecure SECRET_KEY in production")
        logger.warning("Dev-default SECRET_KEY in use; set SECRET_KEY before deploying.")

    # Production schemas are managed by migrations
    if settings.is_development or settings.is_sqlite:
        init_db()
        logger.info("Database tables ensured")

    yield

    logger.info("Shutting down...")
    engine.dispose()


# =============================================================================
# Exception Handlers
# =============================================================================

def _error(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    """Expected domain outcomes: conflict, not found, quota, permission."""
    return _error(exc.status_code, exc.code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "error"),
        str(exc.detail),
    )
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _error(422, "validation_error", "Invalid input data", details)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unhandled exceptions.

    Logs the traceback server-side and returns a generic message.
    """
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return _error(500, "internal_error", "An unexpected error occurred. Please try again later.")


# =============================================================================
# Application Factory
# =============================================================================

def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-tenant CRM API: leads, deals, proposals and notifications.",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Add GZip compression middleware (compress responses > 1KB)
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(PerformanceMonitoringMiddleware)

    cors_origins = settings.cors_origins_list
    allow_all = "*" in cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else cors_origins,
        allow_credentials=not allow_all,  # credentials not compatible with wildcard
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Response-Time"],
    )

    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Register routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(leads_router)
    app.include_router(notifications_router)
    app.include_router(deals_router)
    app.include_router(proposals_router)
    app.include_router(tenants_router)
    app.include_router(users_router)
    app.include_router(tasks_router)
    app.include_router(contacts_router)

    return app


app = create_application()


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict:
    """
    Root endpoint returning API information.
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs" if settings.is_development else "disabled",
    }


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pipeline_crm.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
