"""Personal score adjustment.

A candidate's personal circumstances (marital status, children, housing,
age) produce a single fractional adjustment ``ajuste_total`` that scales
their scores. ``AdjustmentService`` implements the calculation against the
``personal_factors`` collection; ``AdjustmentClient`` is what the report
pipeline calls, either over HTTP when a remote endpoint is configured or
in-process otherwise. The client never raises: any failure means the report
continues with unadjusted scores.
"""

from typing import Any, Dict, Optional, Union

import httpx
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from trustreport.core.config import get_settings
from trustreport.database.mongodb import MongoDBOperations, id_filter
from trustreport.models.profile import PersonalFactors
from trustreport.schemas.report_schemas import AdjustmentRequest, AdjustmentResponse
from trustreport.utils.constants import AnalysisType, Collections
from trustreport.utils.exceptions import ResourceNotFoundError, TrustReportError, ValidationError
from trustreport.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

Scores = Union[float, Dict[str, float]]


def apply_personal_adjustment(base_scores: Any, adjustment: float, result_type: str) -> Any:
    """Scale scores by ``1 + adjustment``.

    OCEAN dimension scores are clamped to 0-100 and non-numeric entries are
    kept as they are; a reliability total is floored at 0. Any other result
    type is returned unchanged.

    Args:
        base_scores: Dimension dict (OCEAN) or summed score (reliability)
        adjustment: Fractional adjustment, e.g. 0.05
        result_type: ``ocean`` or ``reliability``

    Returns:
        Adjusted scores in the same shape as ``base_scores``
    """
    factor = 1 + adjustment

    if result_type == AnalysisType.OCEAN.value and isinstance(base_scores, dict):
        adjusted = {}
        for dimension, score in base_scores.items():
            if isinstance(score, (int, float)) and not isinstance(score, bool):
                adjusted[dimension] = min(100.0, max(0.0, score * factor))
            else:
                adjusted[dimension] = score
        return adjusted

    if result_type == AnalysisType.RELIABILITY.value and isinstance(base_scores, (int, float)):
        return max(0.0, base_scores * factor)

    return base_scores


class AdjustmentOutcome(BaseModel):
    """Successful adjustment as returned by the collaborator contract."""

    success: bool = True
    adjusted_scores: Scores = Field(alias="adjustedScores")
    adjustment: float = 0.0
    personal_factors: Dict[str, Any] = Field(default_factory=dict, alias="personalFactors")

    model_config = {"populate_by_name": True}


class AdjustmentService:
    """Computes and records personal adjustments."""

    def __init__(self, db=None):
        """Initialize adjustment service.

        Args:
            db: Data access facade (defaults to MongoDBOperations)
        """
        self.db = db or MongoDBOperations

    async def calculate(self, request: AdjustmentRequest) -> AdjustmentResponse:
        """Adjust base scores using the personal factors of a session.

        Args:
            request: Validated adjustment request

        Returns:
            AdjustmentResponse: Base and adjusted scores

        Raises:
            ValidationError: If the base scores do not match the result type
            ResourceNotFoundError: If the session has no personal factors
        """
        if request.result_type == AnalysisType.OCEAN.value and not isinstance(request.base_scores, dict):
            raise ValidationError("baseScores debe ser un objeto para resultType 'ocean'", field="baseScores")

        factors_doc = await self.db.find_one(
            Collections.PERSONAL_FACTORS,
            {"session_id": request.session_id},
        )
        if factors_doc is None:
            raise ResourceNotFoundError(
                "Personal factors not found",
                resource_type="personal_factors",
                resource_id=request.session_id,
            )

        factors = PersonalFactors.from_mongo(factors_doc)
        adjustment = factors.ajuste_total or 0.0
        adjusted = apply_personal_adjustment(request.base_scores, adjustment, request.result_type)

        # Record the adjustment on the scored record
        if request.result_type == AnalysisType.RELIABILITY.value and request.attempt_id:
            await self.db.update_one(
                Collections.EXAM_ATTEMPTS,
                id_filter(request.attempt_id),
                {"$set": {
                    "score_base": request.base_scores,
                    "personal_adjustment": adjustment,
                    "score_adjusted": adjusted,
                }},
            )
        elif request.result_type == AnalysisType.OCEAN.value and request.personality_result_id:
            await self.db.update_one(
                Collections.PERSONALITY_RESULTS,
                id_filter(request.personality_result_id),
                {"$set": {
                    "scores_base": request.base_scores,
                    "personal_adjustment": adjustment,
                    "scores_adjusted": adjusted,
                }},
            )

        logger.info(
            "Personal adjustment calculated",
            extra={
                "session_id": request.session_id,
                "result_type": request.result_type,
                "adjustment": adjustment,
            }
        )

        return AdjustmentResponse(
            success=True,
            base_scores=request.base_scores,
            adjusted_scores=adjusted,
            adjustment=adjustment,
            personal_factors=factors.summary(),
        )


class AdjustmentClient:
    """Calls the personal adjustment collaborator on behalf of the report pipeline."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        local_service: Optional[AdjustmentService] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize adjustment client.

        Args:
            base_url: Remote endpoint; when unset the in-process service is used
            timeout: Request timeout in seconds
            local_service: In-process service used without a remote endpoint
            http_client: Shared HTTP client (created per call when omitted)
        """
        self.base_url = base_url if base_url is not None else settings.ADJUSTMENT_SERVICE_URL
        self.timeout = timeout or settings.ADJUSTMENT_TIMEOUT
        self.local_service = local_service or AdjustmentService()
        self.http_client = http_client

    async def calculate(
        self,
        session_id: Optional[str],
        base_scores: Scores,
        result_type: str,
        attempt_id: Optional[str] = None,
        personality_result_id: Optional[str] = None,
    ) -> Optional[AdjustmentOutcome]:
        """Request adjusted scores.

        Args:
            session_id: Session whose personal factors apply
            base_scores: Dimension dict (OCEAN) or summed score (reliability)
            result_type: ``ocean`` or ``reliability``
            attempt_id: Exam attempt to annotate (reliability)
            personality_result_id: Personality result to annotate (OCEAN)

        Returns:
            AdjustmentOutcome, or None when the adjustment is unavailable
        """
        if not session_id:
            logger.info("No session for personal adjustment, using base scores")
            return None

        payload = {
            "sessionId": session_id,
            "baseScores": base_scores,
            "resultType": result_type,
        }
        if attempt_id:
            payload["attemptId"] = attempt_id
        if personality_result_id:
            payload["personalityResultId"] = personality_result_id

        try:
            if self.base_url:
                outcome = await self._call_remote(payload)
            else:
                response = await self.local_service.calculate(AdjustmentRequest.model_validate(payload))
                outcome = AdjustmentOutcome(
                    success=response.success,
                    adjusted_scores=response.adjusted_scores,
                    adjustment=response.adjustment,
                    personal_factors=response.personal_factors,
                )
        except (httpx.HTTPError, TrustReportError, PydanticValidationError, ValueError) as e:
            logger.warning(
                f"Personal adjustment unavailable, continuing without it: {str(e)}",
                extra={
                    "event_type": "upstream_degraded",
                    "upstream": "personal_adjustment",
                    "session_id": session_id,
                    "result_type": result_type,
                }
            )
            return None

        if outcome is None or not outcome.success:
            logger.warning(
                "Personal adjustment reported failure, continuing without it",
                extra={"event_type": "upstream_degraded", "upstream": "personal_adjustment"}
            )
            return None

        return outcome

    async def _call_remote(self, payload: Dict[str, Any]) -> Optional[AdjustmentOutcome]:
        if self.http_client is not None:
            response = await self.http_client.post(self.base_url, json=payload, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.base_url, json=payload)

        if not response.is_success:
            logger.warning(
                f"Adjustment endpoint returned {response.status_code}",
                extra={"status_code": response.status_code}
            )
            return None

        return AdjustmentOutcome.model_validate(response.json())


__all__ = [
    "AdjustmentClient",
    "AdjustmentOutcome",
    "AdjustmentService",
    "apply_personal_adjustment",
]
