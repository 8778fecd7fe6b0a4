"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalog_api.api.deps import get_catalog_service
from catalog_api.catalog.service import CatalogService
from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="catalog-api",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
) -> JSONResponse:
    """Check that the storage backend answers.

    Returns:
        Readiness status, 503 when the store is unreachable.
    """
    try:
        await service.ping()
    except Exception as e:
        logger.warning("Readiness check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "backend": settings.storage_backend},
        )
    return JSONResponse(
        content={"status": "ready", "backend": settings.storage_backend}
    )
