"""Address geocoding and reconciliation engine.

This package provides:
- Text normalization and quadra/lote detection for Brazilian addresses
- A geocoding client with LocationIQ as primary and Nominatim as fallback
- Confidence scoring and best-match selection of provider candidates
- The reconciliation policy and the sequential batch pipeline
"""

from rotasmart.core.geocoding.batch import (
    BatchCancelledError,
    BatchGeocoder,
    LearnedLocationStore,
    build_learning_key,
    get_batch_geocoder,
)
from rotasmart.core.geocoding.normalizer import normalize_text
from rotasmart.core.geocoding.patterns import is_quadra_lote
from rotasmart.core.geocoding.providers import LocationIQ
from rotasmart.core.geocoding.policy import (
    ReconciliationPolicy,
    ReconciliationThresholds,
)
from rotasmart.core.geocoding.scoring import (
    ExpectedAddress,
    score_candidate,
    select_best_match,
)
from rotasmart.core.geocoding.service import GeocodingService, get_geocoding_service

__all__ = [
    "BatchCancelledError",
    "BatchGeocoder",
    "ExpectedAddress",
    "GeocodingService",
    "LearnedLocationStore",
    "LocationIQ",
    "ReconciliationPolicy",
    "ReconciliationThresholds",
    "build_learning_key",
    "get_batch_geocoder",
    "get_geocoding_service",
    "is_quadra_lote",
    "normalize_text",
    "score_candidate",
    "select_best_match",
]
