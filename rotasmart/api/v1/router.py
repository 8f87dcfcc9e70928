"""API v1 router module."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from rotasmart.api.v1.geocoding import router as geocoding_router
from rotasmart.core.config import settings
from rotasmart.core.geocoding.service import GeocodingService, get_geocoding_service

router = APIRouter(default_response_class=JSONResponse)
router.include_router(geocoding_router)


@router.get("/health")
async def health_check(
    request: Request,
    service: GeocodingService = Depends(get_geocoding_service),
) -> dict[str, Any]:
    """
    Health check endpoint.

    Returns
    -------
        Dict with status, version and the geocoding providers in use
    """
    return {
        "status": "healthy",
        "version": settings.version,
        "providers": service.provider_names,
        "correlation_id": getattr(request.state, "correlation_id", None),
    }
