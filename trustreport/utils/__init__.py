"""TrustReport utilities package.

Logging, the exception hierarchy, constants and date helpers shared by the
whole application.
"""

from trustreport.utils.datetime_utils import utc_now
from trustreport.utils.exceptions import (
    CacheError,
    DatabaseError,
    ExternalServiceError,
    ResourceNotFoundError,
    TrustReportError,
    ValidationError,
)
from trustreport.utils.logger import (
    PerformanceLogger,
    get_api_logger,
    get_cache_logger,
    get_llm_logger,
    get_logger,
    setup_logging,
)

__all__ = [
    "utc_now",
    "CacheError",
    "DatabaseError",
    "ExternalServiceError",
    "ResourceNotFoundError",
    "TrustReportError",
    "ValidationError",
    "PerformanceLogger",
    "get_api_logger",
    "get_cache_logger",
    "get_llm_logger",
    "get_logger",
    "setup_logging",
]
