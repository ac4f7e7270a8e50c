"""API routers for the TrustReport application.

This module provides the FastAPI routers that define the API endpoints
for reports, personal adjustments, the analysis cache and health checks.
"""

from trustreport.routers.adjustments import router as adjustments_router
from trustreport.routers.analysis_cache import router as analysis_cache_router
from trustreport.routers.health import router as health_router
from trustreport.routers.reports import router as reports_router

__all__ = [
    "adjustments_router",
    "analysis_cache_router",
    "health_router",
    "reports_router",
]
