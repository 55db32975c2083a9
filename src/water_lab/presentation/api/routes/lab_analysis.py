"""Lab analysis endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from ....domain.exceptions import ConcurrentReplaceError
from ....infrastructure.services import ServiceFactory, get_service_factory
from ..schemas.lab_analysis_schemas import (
    AnalysisOutcomeResponse,
    LabAnalysisResponse,
    SubmitAnalysisRequest,
    VerdictResponse,
    WaterParametersSchema
)

router = APIRouter()


@router.post("/lab-analyses/preview", response_model=VerdictResponse)
async def preview_analysis(
    request: WaterParametersSchema,
    factory: ServiceFactory = Depends(get_service_factory)
) -> VerdictResponse:
    """Score parameters without saving them."""
    async with factory.get_analysis_service() as service:
        verdict = service.preview(request.to_domain())
    return VerdictResponse.from_domain(verdict)


@router.put("/reports/{report_id}/lab-analysis", response_model=AnalysisOutcomeResponse)
async def submit_analysis(
    report_id: UUID,
    request: SubmitAnalysisRequest,
    factory: ServiceFactory = Depends(get_service_factory)
) -> AnalysisOutcomeResponse:
    """Record (or replace) the lab analysis of a report.

    A saved analysis whose notification failed still answers 200 with
    ``status="partial_success"`` and a warning.
    """
    async with factory.get_analysis_service() as service:
        outcome = await service.submit_analysis(
            report_id=report_id,
            params=request.parameters.to_domain(),
            officer_id=request.officer_id,
            puskesmas_id=request.puskesmas_id,
            notes=request.notes,
            expected_revision=request.expected_revision
        )

    response = AnalysisOutcomeResponse.from_domain(outcome)
    if outcome.succeeded:
        return response

    if outcome.error_stage == ConcurrentReplaceError.STAGE:
        status_code = status.HTTP_409_CONFLICT
    elif outcome.retryable:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=status_code, detail=response.model_dump(mode="json"))


@router.get("/reports/{report_id}/lab-analysis", response_model=LabAnalysisResponse)
async def get_analysis(
    report_id: UUID,
    factory: ServiceFactory = Depends(get_service_factory)
) -> LabAnalysisResponse:
    """Get the stored lab analysis of a report."""
    async with factory.get_analysis_service() as service:
        analysis = await service.get_analysis(report_id)

    if analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No lab analysis recorded for report {report_id}"
        )
    return LabAnalysisResponse.from_domain(analysis)
