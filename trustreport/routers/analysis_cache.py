"""Administration of the AI analysis cache."""

from fastapi import APIRouter, Depends, status

from trustreport.api.dependencies import get_analysis_cache, get_report_service
from trustreport.cache.analysis_cache import AnalysisCache
from trustreport.schemas.base import ErrorResponse, MessageResponse
from trustreport.schemas.report_schemas import (
    CacheCleanupResponse,
    CacheInvalidateResponse,
    CacheStatsResponse,
    SaveAnalysisRequest,
)
from trustreport.services.report_service import ReportService
from trustreport.utils.constants import AnalysisType
from trustreport.utils.logger import get_api_logger

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    }
)

logger = get_api_logger()


@router.get("/stats", response_model=CacheStatsResponse, summary="Cache statistics")
async def get_cache_stats(
    analysis_cache: AnalysisCache = Depends(get_analysis_cache),
) -> CacheStatsResponse:
    stats = await analysis_cache.get_stats()
    return CacheStatsResponse(**stats)


@router.post("/cleanup", response_model=CacheCleanupResponse, summary="Delete expired entries")
async def cleanup_cache(
    analysis_cache: AnalysisCache = Depends(get_analysis_cache),
) -> CacheCleanupResponse:
    deleted = await analysis_cache.cleanup_expired()
    return CacheCleanupResponse(deleted=deleted)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Store an externally produced analysis",
)
async def save_analysis(
    request: SaveAnalysisRequest,
    report_service: ReportService = Depends(get_report_service),
) -> MessageResponse:
    """Store a narrative for the owner and scope of a session.

    Args:
        request: Session id, analysis type and narrative
        report_service: Report service resolving the session owner

    Returns:
        MessageResponse: Confirmation message
    """
    return await report_service.save_analysis(request)


@router.delete(
    "/{user_id}/{scope_id}/{analysis_type}",
    response_model=CacheInvalidateResponse,
    summary="Deactivate cached analyses",
)
async def invalidate_analysis(
    user_id: str,
    scope_id: str,
    analysis_type: AnalysisType,
    analysis_cache: AnalysisCache = Depends(get_analysis_cache),
) -> CacheInvalidateResponse:
    deactivated = await analysis_cache.invalidate(user_id, scope_id, analysis_type.value)
    logger.info(
        "Cached analyses invalidated",
        extra={"user_id": user_id, "scope_id": scope_id, "analysis_type": analysis_type.value}
    )
    return CacheInvalidateResponse(deactivated=deactivated)
