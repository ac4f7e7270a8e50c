"""Common dependencies for FastAPI routes.

Services are built per request on top of the shared MongoDB and Redis
clients; tests replace them through ``app.dependency_overrides``.
"""

from fastapi import Depends

from trustreport.cache.analysis_cache import AnalysisCache
from trustreport.cache.cache_manager import CacheManager
from trustreport.core.config import get_settings
from trustreport.database.mongodb import MongoDBOperations
from trustreport.services.adjustment_service import AdjustmentClient, AdjustmentService
from trustreport.services.report_service import ReportService
from trustreport.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


# Service dependencies
def get_cache_manager() -> CacheManager:
    return CacheManager()


def get_analysis_cache() -> AnalysisCache:
    return AnalysisCache(MongoDBOperations)


def get_adjustment_service() -> AdjustmentService:
    return AdjustmentService(MongoDBOperations)


def get_report_service(
    cache_manager: CacheManager = Depends(get_cache_manager),
    analysis_cache: AnalysisCache = Depends(get_analysis_cache),
    adjustment_service: AdjustmentService = Depends(get_adjustment_service),
) -> ReportService:
    """Build the report service for one request.

    Returns:
        ReportService: Service wired to the shared data stores
    """
    return ReportService(
        db=MongoDBOperations,
        cache_manager=cache_manager,
        analysis_cache=analysis_cache,
        adjustment_client=AdjustmentClient(local_service=adjustment_service),
    )


__all__ = [
    "get_cache_manager",
    "get_analysis_cache",
    "get_adjustment_service",
    "get_report_service",
]
