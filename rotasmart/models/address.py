"""Address models exchanged with the geocoding engine."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeocodeStatus(str, Enum):
    """Final classification of a reconciled row."""

    VALID = "valid"
    PENDING = "pending"
    UPDATED = "atualizado"


class AddressInput(BaseModel):
    """One delivery address row submitted in a batch."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    raw_address: str = Field(default="", alias="rawAddress")
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    learned: bool = False

    @field_validator("raw_address", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        """Treat a missing address as an empty one."""
        return "" if value is None else value

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coerce_coordinate(cls, value: Any) -> Any:
        """Keep coordinates as text, accepting spreadsheet numbers."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("learned", mode="before")
    @classmethod
    def none_to_false(cls, value: Any) -> Any:
        """Rows without the flag are not learned."""
        return False if value is None else value


class AddressComponents(BaseModel):
    """Structured address fields a provider returned for a place."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    city: Optional[str] = None
    county: Optional[str] = None
    suburb: Optional[str] = None
    state: Optional[str] = None
    road: Optional[str] = None
    house_number: Optional[str] = Field(default=None, alias="houseNumber")


class GeocodeCandidate(BaseModel):
    """A place returned by a forward or reverse geocoding call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lat: float
    lon: float
    display_name: str = Field(default="", alias="displayName")
    address_components: AddressComponents = Field(
        default_factory=AddressComponents, alias="addressComponents"
    )
    provider: str = ""
    # Full provider address breakdown, returned as-is by the reverse endpoint
    address_details: Dict[str, Any] = Field(default_factory=dict)


class ScoredCandidate(BaseModel):
    """A candidate paired with its confidence score."""

    model_config = ConfigDict(frozen=True)

    candidate: GeocodeCandidate
    score: float = Field(..., ge=0, le=1)


class AddressResult(BaseModel):
    """Reconciled output for one input row."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_address: str = Field(alias="originalAddress")
    corrected_address: str = Field(alias="correctedAddress")
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    status: GeocodeStatus
    note: str = ""
    search_used: str = Field(default="", alias="searchUsed")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    learned: bool = False

    @property
    def notes(self) -> list[str]:
        """Decision tags in the order they were recorded."""
        return [tag for tag in self.note.split(";") if tag]
