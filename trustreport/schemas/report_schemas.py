"""Request and response schemas for reports, adjustments and the analysis cache."""

from typing import Any, Dict, Optional, Union

from pydantic import Field

from trustreport.schemas.base import BaseSchema
from trustreport.utils.constants import AnalysisType


# ============================================================================
# REPORTS
# ============================================================================

class ReliabilityReportRequest(BaseSchema):
    """Body of ``POST /reports/reliability``."""

    exam_attempt_id: str = Field(..., min_length=1, description="Exam attempt to report on")
    include_charts: bool = True
    include_analysis: bool = True
    force_regenerate: bool = False


class OceanReportRequest(BaseSchema):
    """Body of ``POST /reports/ocean``."""

    personality_result_id: str = Field(..., min_length=1, description="Personality result to report on")
    include_charts: bool = True
    include_analysis: bool = True
    force_regenerate: bool = False
    selected_model: Optional[str] = Field(None, description="Overrides the configured OCEAN model")


class ReportMetadata(BaseSchema):
    candidate: str
    exam: Optional[str] = None
    test: Optional[str] = None
    date: str


class ReportResponse(BaseSchema):
    html: str
    success: bool = True
    metadata: ReportMetadata


class TemplateReportRequest(BaseSchema):
    """Body of ``POST /reports/reliability/template``."""

    exam_attempt_id: str = Field(..., min_length=1)
    include_analysis: bool = True
    custom_template: Optional[str] = Field(
        None, description="Placeholder template overriding the configured one"
    )


class TemplateReportData(BaseSchema):
    candidate_name: str
    exam_title: str
    total_score: int
    risk_level: str


class TemplateReportResponse(BaseSchema):
    html_content: str
    report_data: TemplateReportData


# ============================================================================
# PERSONAL ADJUSTMENT
# ============================================================================

class AdjustmentRequest(BaseSchema):
    """Body of ``POST /adjustments/calculate``."""

    session_id: str = Field(..., min_length=1)
    base_scores: Union[float, Dict[str, float]]
    result_type: str = Field(..., min_length=1, description="'ocean', 'reliability' or other")
    attempt_id: Optional[str] = None
    personality_result_id: Optional[str] = None


class AdjustmentResponse(BaseSchema):
    success: bool = True
    base_scores: Union[float, Dict[str, float]]
    adjusted_scores: Union[float, Dict[str, float]]
    adjustment: float
    personal_factors: Dict[str, Any]


# ============================================================================
# ANALYSIS CACHE
# ============================================================================

class SaveAnalysisRequest(BaseSchema):
    """Body of ``POST /analysis-cache``; stores an externally produced narrative."""

    session_id: str = Field(..., min_length=1)
    analysis_type: AnalysisType
    analysis: str = Field(..., min_length=1)
    model: Optional[str] = None


class CacheStatsResponse(BaseSchema):
    total: int = 0
    ocean: int = 0
    reliability: int = 0
    active: int = 0
    expired: int = 0
    total_tokens: int = 0


class CacheCleanupResponse(BaseSchema):
    success: bool = True
    deleted: int


class CacheInvalidateResponse(BaseSchema):
    success: bool = True
    deactivated: int


__all__ = [
    "ReliabilityReportRequest",
    "OceanReportRequest",
    "ReportMetadata",
    "ReportResponse",
    "TemplateReportRequest",
    "TemplateReportData",
    "TemplateReportResponse",
    "AdjustmentRequest",
    "AdjustmentResponse",
    "SaveAnalysisRequest",
    "CacheStatsResponse",
    "CacheCleanupResponse",
    "CacheInvalidateResponse",
]
