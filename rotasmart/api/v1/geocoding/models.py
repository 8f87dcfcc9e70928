"""Request and response models for geocoding endpoints."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from rotasmart.models.address import AddressInput


class BatchGeocodeRequest(BaseModel):
    """Batch of address rows to reconcile."""

    addresses: List[AddressInput] = Field(
        ..., description="Address rows, processed in order"
    )


class ReverseGeocodeRequest(BaseModel):
    """Coordinate to resolve into an address."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(
        ..., ge=-180, le=180, description="Longitude in decimal degrees"
    )


class ReverseGeocodeResponse(BaseModel):
    """Address found for a coordinate."""

    display_name: str = Field(..., description="Full address as named by the provider")
    address: Dict[str, Any] = Field(
        default_factory=dict, description="Provider address breakdown"
    )
