"""Logging middleware for TrustReport API.

Logs every request and its response with the correlation id assigned by
the request id middleware.
"""

import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from trustreport.utils.logger import get_api_logger, log_api_request, log_api_response

logger = get_api_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """Initialize logging middleware.

        Args:
            app: The ASGI application
            exclude_paths: List of paths to exclude from logging
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or ["/health", "/metrics", "/docs", "/openapi.json"]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        request_id = getattr(request.state, "request_id", None)
        start_time = time.time()

        log_api_request(request.method, request.url.path, request_id=request_id, logger=logger)

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        log_api_response(
            request.method,
            request.url.path,
            response.status_code,
            round(duration_ms, 2),
            logger=logger,
        )

        return response


__all__ = ["LoggingMiddleware"]
