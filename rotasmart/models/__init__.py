"""Address models package."""

from .address import (
    AddressComponents,
    AddressInput,
    AddressResult,
    GeocodeCandidate,
    GeocodeStatus,
    ScoredCandidate,
)

__all__ = [
    "AddressComponents",
    "AddressInput",
    "AddressResult",
    "GeocodeCandidate",
    "GeocodeStatus",
    "ScoredCandidate",
]
