"""Error handler middleware for TrustReport API.

Every failure leaves the API as ``{"error", "code", "request_id"}`` with a
status derived from the exception type.
"""

from typing import Callable
from uuid import uuid4

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from trustreport.utils.exceptions import (
    ExternalServiceError,
    ResourceNotFoundError,
    TrustReportError,
    ValidationError,
    create_error_response,
)
from trustreport.utils.logger import get_logger

logger = get_logger(__name__)


def status_code_for(error: TrustReportError) -> int:
    """Map an application error to its HTTP status.

    Args:
        error: The application exception

    Returns:
        int: 400, 404, 503 or 500
    """
    if isinstance(error, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, ResourceNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ExternalServiceError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def application_error_response(
    error: TrustReportError,
    request_id: str,
    request: Request,
    debug: bool = False,
) -> JSONResponse:
    """Log an application error and build its JSON response."""
    status_code = status_code_for(error)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Application error: {error.message}",
        extra={
            "request_id": request_id,
            "error_code": error.error_code,
            "error_type": error.__class__.__name__,
            "status_code": status_code,
            "path": request.url.path,
            "method": request.method,
            "details": error.details,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=create_error_response(error, request_id=request_id, include_details=debug),
    )


def unexpected_error_response(error: Exception, request_id: str, request: Request) -> JSONResponse:
    """Log an unexpected error with traceback and build a generic 500 response."""
    logger.error(
        f"Unexpected error: {str(error)}",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(error).__name__,
        },
        exc_info=error,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Error interno del servidor",
            "code": "INTERNAL_ERROR",
            "request_id": request_id,
        },
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catches exceptions that escape the route exception handlers."""

    def __init__(self, app: ASGIApp, debug: bool = False):
        """Initialize error handler middleware.

        Args:
            app: The ASGI application
            debug: Whether to include error details in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = getattr(request.state, "request_id", None) or str(uuid4())

        try:
            return await call_next(request)
        except TrustReportError as e:
            return application_error_response(e, request_id, request, debug=self.debug)
        except Exception as e:
            return unexpected_error_response(e, request_id, request)


__all__ = [
    "ErrorHandlerMiddleware",
    "application_error_response",
    "status_code_for",
    "unexpected_error_response",
]
