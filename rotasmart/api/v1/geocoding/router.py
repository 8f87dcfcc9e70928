"""Geocoding API endpoints used by the route planning UI."""

from collections import Counter
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from starlette.status import HTTP_404_NOT_FOUND

from rotasmart.api.v1.geocoding.models import (
    BatchGeocodeRequest,
    ReverseGeocodeRequest,
    ReverseGeocodeResponse,
)
from rotasmart.core.geocoding.batch import BatchGeocoder, get_batch_geocoder
from rotasmart.core.logging import get_logger
from rotasmart.models.address import AddressResult

router = APIRouter(prefix="/geocoding", tags=["geocoding"])
logger = get_logger()


# Endpoints are sync so FastAPI runs them in its threadpool; provider calls
# and rate-limit waits block.
@router.post("/batch", response_model=List[AddressResult])
def batch_geocode(
    payload: BatchGeocodeRequest,
    geocoder: BatchGeocoder = Depends(get_batch_geocoder),
) -> List[AddressResult]:
    """
    Reconcile a batch of delivery addresses.

    Returns one result per submitted row, in the same order. Each result has
    a status:
    - **valid**: the coordinate can be used for routing
    - **pending**: a person must place the pin on the map
    - **atualizado**: a previously learned coordinate was used

    The `note` field lists every decision taken for the row, separated by `;`.
    """
    results = geocoder.geocode_batch(payload.addresses)
    statuses = Counter(result.status.value for result in results)
    logger.info("batch_geocode_completed", rows=len(results), statuses=dict(statuses))
    return results


@router.post("/reverse", response_model=ReverseGeocodeResponse)
def reverse_geocode(
    payload: ReverseGeocodeRequest,
    geocoder: BatchGeocoder = Depends(get_batch_geocoder),
) -> ReverseGeocodeResponse:
    """Resolve a coordinate to an address for the map adjustment screen."""
    candidate = geocoder.reverse_lookup(payload.lat, payload.lon)
    if candidate is None or not candidate.display_name:
        raise HTTPException(
            status_code=HTTP_404_NOT_FOUND,
            detail="No address found for the coordinates.",
        )
    return ReverseGeocodeResponse(
        display_name=candidate.display_name,
        address=candidate.address_details,
    )
