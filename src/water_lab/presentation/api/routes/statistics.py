"""Area statistics endpoints."""

from fastapi import APIRouter, Depends, Query

from ....application.services.statistics_service import TimeRange
from ....infrastructure.services import ServiceFactory, get_service_factory
from ..schemas.lab_analysis_schemas import DashboardResponse

router = APIRouter()


@router.get("/{kecamatan}", response_model=DashboardResponse)
async def get_dashboard(
    kecamatan: str,
    time_range: TimeRange = Query(TimeRange.MONTH, description="week, month, quarter or year"),
    factory: ServiceFactory = Depends(get_service_factory)
) -> DashboardResponse:
    """Get report and water quality statistics for a kecamatan."""
    async with factory.get_statistics_service() as service:
        dashboard = await service.get_dashboard(kecamatan, time_range)
    return DashboardResponse.from_domain(dashboard)
