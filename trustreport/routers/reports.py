"""Report generation endpoints.

Each endpoint loads its inputs from the shared database, scores them and
returns a self-contained HTML document.
"""

from fastapi import APIRouter, Depends, status

from trustreport.api.dependencies import get_report_service
from trustreport.schemas.base import ErrorResponse
from trustreport.schemas.report_schemas import (
    OceanReportRequest,
    ReliabilityReportRequest,
    ReportResponse,
    TemplateReportRequest,
    TemplateReportResponse,
)
from trustreport.services.report_service import ReportService
from trustreport.utils.logger import get_api_logger

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Input not found"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    }
)

logger = get_api_logger()


@router.post(
    "/reliability",
    response_model=ReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate reliability report",
    description="Score an exam attempt and render its reliability report",
)
async def generate_reliability_report(
    request: ReliabilityReportRequest,
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    """Generate the HTML reliability report of an exam attempt.

    Args:
        request: Attempt id and rendering options
        report_service: Report service

    Returns:
        ReportResponse: HTML document and report metadata
    """
    logger.info(
        "Reliability report requested",
        extra={"exam_attempt_id": request.exam_attempt_id, "force_regenerate": request.force_regenerate}
    )
    return await report_service.generate_reliability_report(request)


@router.post(
    "/ocean",
    response_model=ReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate OCEAN personality report",
)
async def generate_ocean_report(
    request: OceanReportRequest,
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    """Generate the HTML personality report of a personality result."""
    logger.info(
        "OCEAN report requested",
        extra={"personality_result_id": request.personality_result_id, "selected_model": request.selected_model}
    )
    return await report_service.generate_ocean_report(request)


@router.post(
    "/reliability/template",
    response_model=TemplateReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate reliability report from a placeholder template",
)
async def generate_template_report(
    request: TemplateReportRequest,
    report_service: ReportService = Depends(get_report_service),
) -> TemplateReportResponse:
    logger.info(
        "Template reliability report requested",
        extra={"exam_attempt_id": request.exam_attempt_id, "custom_template": bool(request.custom_template)}
    )
    return await report_service.generate_template_report(request)
