"""Request and response schemas for the TrustReport API."""

from trustreport.schemas.base import (
    BaseSchema,
    DependencyStatus,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
)
from trustreport.schemas.report_schemas import (
    AdjustmentRequest,
    AdjustmentResponse,
    CacheCleanupResponse,
    CacheInvalidateResponse,
    CacheStatsResponse,
    OceanReportRequest,
    ReliabilityReportRequest,
    ReportMetadata,
    ReportResponse,
    SaveAnalysisRequest,
    TemplateReportData,
    TemplateReportRequest,
    TemplateReportResponse,
)

__all__ = [
    "BaseSchema",
    "DependencyStatus",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "AdjustmentRequest",
    "AdjustmentResponse",
    "CacheCleanupResponse",
    "CacheInvalidateResponse",
    "CacheStatsResponse",
    "OceanReportRequest",
    "ReliabilityReportRequest",
    "ReportMetadata",
    "ReportResponse",
    "SaveAnalysisRequest",
    "TemplateReportData",
    "TemplateReportRequest",
    "TemplateReportResponse",
]
