"""Personal adjustment endpoint."""

from fastapi import APIRouter, Depends, status

from trustreport.api.dependencies import get_adjustment_service
from trustreport.schemas.base import ErrorResponse
from trustreport.schemas.report_schemas import AdjustmentRequest, AdjustmentResponse
from trustreport.services.adjustment_service import AdjustmentService

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Personal factors not found"},
    }
)


@router.post(
    "/calculate",
    response_model=AdjustmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Apply personal factors to base scores",
)
async def calculate_adjustment(
    request: AdjustmentRequest,
    adjustment_service: AdjustmentService = Depends(get_adjustment_service),
) -> AdjustmentResponse:
    """Adjust OCEAN dimension scores or a reliability total by the session's personal factors.

    Args:
        request: Session, base scores and result type
        adjustment_service: Adjustment service

    Returns:
        AdjustmentResponse: Base and adjusted scores with the factor summary
    """
    return await adjustment_service.calculate(request)
