"""Main FastAPI application module for TrustReport.

This module creates and configures the FastAPI application instance with all
necessary middleware, routers, and event handlers.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from trustreport.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    application_error_response,
    unexpected_error_response,
)
from trustreport.api.middleware.logging_middleware import LoggingMiddleware
from trustreport.api.middleware.request_id import RequestIDMiddleware, get_request_id
from trustreport.core.config import get_settings
from trustreport.core.events import create_start_app_handler, create_stop_app_handler
from trustreport.utils.exceptions import TrustReportError
from trustreport.utils.logger import get_logger

# Initialize settings and logger
settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle events.

    Args:
        app: FastAPI application instance
    """
    logger.info(
        "Starting TrustReport API",
        extra={
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.APP_ENV,
        }
    )

    startup_handler = create_start_app_handler(app)
    await startup_handler()

    yield

    logger.info("Shutting down TrustReport API")

    shutdown_handler = create_stop_app_handler(app)
    await shutdown_handler()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Reliability and OCEAN personality report generation",
        version=settings.APP_VERSION,
        docs_url=f"{settings.API_V1_PREFIX}/docs" if settings.ENABLE_API_DOCS else None,
        redoc_url=f"{settings.API_V1_PREFIX}/redoc" if settings.ENABLE_API_DOCS else None,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json" if settings.ENABLE_API_DOCS else None,
        lifespan=lifespan,
        swagger_ui_parameters={"displayRequestDuration": True},
    )

    app = register_exception_handlers(app)
    app = register_middleware(app)
    app = register_routers(app)
    app = register_health_checks(app)

    if settings.ENABLE_METRICS:
        setup_metrics(app)

    return app


def _validation_message(exc: RequestValidationError) -> str:
    """First missing body field as ``"<field> es requerido"``, else a generic message."""
    for error in exc.errors():
        if error.get("type") == "missing":
            location = [str(part) for part in error.get("loc", ()) if part != "body"]
            if location:
                return f"{location[-1]} es requerido"
    return "Validation error"


def register_exception_handlers(app: FastAPI) -> FastAPI:
    """Register custom exception handlers.

    Args:
        app: FastAPI application instance

    Returns:
        FastAPI: Application with exception handlers registered
    """

    @app.exception_handler(TrustReportError)
    async def application_exception_handler(
        request: Request, exc: TrustReportError
    ) -> JSONResponse:
        """Handle application errors."""
        request_id = get_request_id()
        return application_error_response(
            exc, request_id, request, debug=settings.is_development()
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions."""
        request_id = get_request_id()

        logger.warning(
            f"HTTP exception: {exc.detail}",
            extra={
                "request_id": request_id,
                "status_code": exc.status_code,
                "path": request.url.path,
            }
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": str(exc.detail),
                "code": f"HTTP_{exc.status_code}",
                "request_id": request_id,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors as 400."""
        request_id = get_request_id()

        logger.warning(
            "Validation error",
            extra={
                "request_id": request_id,
                "errors": exc.errors(),
                "path": request.url.path,
            }
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": _validation_message(exc),
                "code": "VALIDATION_ERROR",
                "request_id": request_id,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle uncaught exceptions."""
        return unexpected_error_response(exc, get_request_id(), request)

    return app


def register_middleware(app: FastAPI) -> FastAPI:
    """Register application middleware.

    Args:
        app: FastAPI application instance

    Returns:
        FastAPI: Application with middleware registered
    """
    # Added last runs first

    app.add_middleware(ErrorHandlerMiddleware, debug=settings.is_development())

    app.add_middleware(LoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    # Reports are large HTML documents
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time to response headers."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response

    return app


def register_routers(app: FastAPI) -> FastAPI:
    """Register API routers.

    Args:
        app: FastAPI application instance

    Returns:
        FastAPI: Application with routers registered
    """
    # Import routers here to avoid circular imports
    from trustreport.routers import adjustments, analysis_cache, health, reports

    api_prefix = settings.API_V1_PREFIX

    app.include_router(
        health.router,
        prefix=f"{api_prefix}/health",
        tags=["Health"],
    )

    app.include_router(
        reports.router,
        prefix=f"{api_prefix}/reports",
        tags=["Reports"],
    )

    app.include_router(
        adjustments.router,
        prefix=f"{api_prefix}/adjustments",
        tags=["Adjustments"],
    )

    app.include_router(
        analysis_cache.router,
        prefix=f"{api_prefix}/analysis-cache",
        tags=["Analysis Cache"],
    )

    return app


def register_health_checks(app: FastAPI) -> FastAPI:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance

    Returns:
        FastAPI: Application with health checks registered
    """

    @app.get(
        "/health",
        tags=["Health"],
        summary="Basic health check",
        response_model=Dict[str, Any],
    )
    async def health_check() -> Dict[str, Any]:
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.APP_ENV,
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="Root endpoint",
        response_model=Dict[str, str],
    )
    async def root() -> Dict[str, str]:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": f"{settings.API_V1_PREFIX}/docs",
            "health": "/health",
        }

    return app


def setup_metrics(app: FastAPI) -> None:
    """Setup Prometheus metrics.

    Args:
        app: FastAPI application instance
    """
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[".*health.*", "/metrics"],
        inprogress_name="trustreport_inprogress",
        inprogress_labels=True,
    )

    instrumentator.instrument(app).expose(
        app,
        endpoint="/metrics",
        tags=["Metrics"],
        include_in_schema=False,
    )

    logger.info("Prometheus metrics enabled at /metrics")


# Create the application instance
app = create_application()


__all__ = ["app", "create_application"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trustreport.api.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.is_development(),
        log_config=None,
        access_log=False,
    )
