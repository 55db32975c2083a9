"""Liveness and database readiness endpoints."""

from fastapi import APIRouter, Depends, Response, status

from ....infrastructure.logging import DEFAULT_SERVICE_NAME
from ....infrastructure.services import ServiceFactory, get_service_factory

router = APIRouter()


@router.get("/health")
async def health_check(
    response: Response,
    factory: ServiceFactory = Depends(get_service_factory)
) -> dict:
    """Answer 503 while the lab database is unreachable."""
    database_up = await factory.database_manager.ping()
    if not database_up:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "healthy" if database_up else "degraded",
        "service": DEFAULT_SERVICE_NAME,
        "database": "up" if database_up else "down"
    }


@router.get("/")
async def root() -> dict:
    return {"service": DEFAULT_SERVICE_NAME, "docs": "/docs", "api": "/api/v1"}
