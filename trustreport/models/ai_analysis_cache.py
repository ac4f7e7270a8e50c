"""AI analysis cache entry model."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from trustreport.models.base import BaseDocument, DocumentId
from trustreport.utils.constants import AnalysisType
from trustreport.utils.datetime_utils import utc_now


class AnalysisResult(BaseModel):
    """Narrative payload stored with a cache entry."""

    analysis: Optional[str] = None
    conclusions: Optional[str] = None
    generated_at: datetime = Field(default_factory=utc_now)
    model_used: Optional[str] = None


class AIAnalysisCacheEntry(BaseDocument):
    """A stored narrative keyed by user, scope and input fingerprint.

    ``scope_id`` is the exam id for reliability analyses and the
    psychometric test id for OCEAN analyses; both are also kept under their
    own field names for readers that query by them.
    """

    user_id: DocumentId
    scope_id: Optional[DocumentId] = None
    exam_id: Optional[DocumentId] = None
    psychometric_test_id: Optional[DocumentId] = None
    analysis_type: AnalysisType
    input_data: Dict[str, Any] = Field(default_factory=dict)
    input_data_hash: str
    ai_analysis_result: AnalysisResult
    tokens_used: int = 0
    model_used: Optional[str] = None
    requested_by: Optional[DocumentId] = None
    generated_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    is_active: bool = True


__all__ = ["AnalysisResult", "AIAnalysisCacheEntry"]
