"""Geocoding provider client.

This module wraps the two interchangeable providers used by the engine:
- LocationIQ, authenticated, used first when an API key is configured
- Nominatim, free and strictly rate limited, used as fallback

Each provider has a single rate limiter shared by forward and reverse calls.
Provider errors are logged and never raised; ``None`` is the only failure
signal returned to callers.
"""

import logging
from typing import Any, Callable, List, Optional

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim
from geopy.location import Location

from rotasmart.core.config import Settings, settings as default_settings
from rotasmart.core.geocoding.constants import (
    CITY_KEYS,
    PROVIDER_LOCATIONIQ,
    PROVIDER_NOMINATIM,
    SUBURB_KEYS,
)
from rotasmart.core.geocoding.metrics import PROVIDER_CALLS
from rotasmart.core.geocoding.providers import LocationIQ
from rotasmart.models.address import AddressComponents, GeocodeCandidate

logger = logging.getLogger(__name__)


def _invoke(method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call a geocoder method; wrapped by the per-provider rate limiter."""
    return method(*args, **kwargs)


def _first(address: dict, keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value:
            return str(value)
    return None


def candidate_from_location(location: Location, provider: str) -> GeocodeCandidate:
    """Convert a geopy location into a candidate.

    Args:
        location: Location returned by a Nominatim-compatible geocoder
        provider: Provider name recorded on the candidate

    Returns:
        GeocodeCandidate with the provider address components

    Raises:
        ValueError: If the location has no usable coordinates
    """
    raw = location.raw if isinstance(location.raw, dict) else {}
    address = raw.get("address")
    if not isinstance(address, dict):
        address = {}

    try:
        lat = float(location.latitude)
        lon = float(location.longitude)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Malformed {provider} location: {e}") from e

    components = AddressComponents(
        city=_first(address, CITY_KEYS),
        county=address.get("county"),
        suburb=_first(address, SUBURB_KEYS),
        state=address.get("state"),
        road=address.get("road"),
        house_number=address.get("house_number"),
    )
    return GeocodeCandidate(
        lat=lat,
        lon=lon,
        display_name=raw.get("display_name") or location.address or "",
        address_components=components,
        provider=provider,
        address_details=dict(address),
    )


class GeocodingService:
    """Forward and reverse geocoding with primary/fallback providers."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        locationiq: Optional[Any] = None,
        nominatim: Optional[Any] = None,
    ):
        """Initialize the providers.

        Args:
            config: Settings to read provider configuration from
            locationiq: Optional geocoder to use instead of the LocationIQ client
            nominatim: Optional geocoder to use instead of geopy's Nominatim
        """
        self.settings = config or default_settings

        self.country_codes = self.settings.GEOCODING_COUNTRY_CODES
        self.result_limit = self.settings.GEOCODING_RESULT_LIMIT
        self.timeout = self.settings.GEOCODING_TIMEOUT
        self.max_retries = self.settings.GEOCODING_MAX_RETRIES
        self.error_wait_seconds = self.settings.GEOCODING_ERROR_WAIT_SECONDS

        self._init_locationiq(locationiq)
        self._init_nominatim(nominatim)

    def _rate_limited(self, min_delay_seconds: float) -> RateLimiter:
        return RateLimiter(
            _invoke,
            min_delay_seconds=min_delay_seconds,
            max_retries=self.max_retries,
            # geopy requires the error wait to be at least the call spacing
            error_wait_seconds=max(self.error_wait_seconds, min_delay_seconds),
            swallow_exceptions=False,
        )

    def _init_locationiq(self, geocoder: Optional[Any]) -> None:
        """Initialize LocationIQ when an API key (or a geocoder) is available."""
        rate_limit = self.settings.LOCATIONIQ_RATE_LIMIT

        if geocoder is None and self.settings.locationiq_enabled:
            try:
                geocoder = LocationIQ(
                    api_key=self.settings.LOCATIONIQ_API_KEY,
                    timeout=self.timeout,
                    user_agent=self.settings.NOMINATIM_USER_AGENT,
                )
            except Exception as e:
                logger.error(f"Failed to initialize LocationIQ geocoder: {e}")
                geocoder = None

        self.locationiq = geocoder
        if self.locationiq is None:
            self.locationiq_call = None
            logger.info("LOCATIONIQ_API_KEY not set, using Nominatim only")
            return

        self.locationiq_call = self._rate_limited(rate_limit)
        logger.info(f"LocationIQ geocoder initialized with {rate_limit}s rate limit")

    def _init_nominatim(self, geocoder: Optional[Any]) -> None:
        """Initialize Nominatim as fallback."""
        rate_limit = self.settings.NOMINATIM_RATE_LIMIT

        if geocoder is None:
            try:
                geocoder = Nominatim(
                    user_agent=self.settings.NOMINATIM_USER_AGENT,
                    timeout=self.timeout,
                )
            except Exception as e:
                logger.error(f"Failed to initialize Nominatim geocoder: {e}")
                geocoder = None

        self.nominatim = geocoder
        self.nominatim_call = self._rate_limited(rate_limit) if geocoder else None
        if geocoder:
            logger.info(f"Nominatim geocoder initialized with {rate_limit}s rate limit")

    @property
    def provider_names(self) -> List[str]:
        """Configured providers in the order they are tried."""
        names = []
        if self.locationiq_call:
            names.append(PROVIDER_LOCATIONIQ)
        if self.nominatim_call:
            names.append(PROVIDER_NOMINATIM)
        return names

    def _providers(self) -> list[tuple[str, Any, RateLimiter]]:
        providers = []
        if self.locationiq is not None and self.locationiq_call is not None:
            providers.append((PROVIDER_LOCATIONIQ, self.locationiq, self.locationiq_call))
        if self.nominatim is not None and self.nominatim_call is not None:
            providers.append((PROVIDER_NOMINATIM, self.nominatim, self.nominatim_call))
        return providers

    def _forward_with(
        self, provider: str, geocoder: Any, call: RateLimiter, query: str
    ) -> Optional[List[GeocodeCandidate]]:
        locations = call(
            geocoder.geocode,
            query,
            exactly_one=False,
            limit=self.result_limit,
            addressdetails=True,
            country_codes=self.country_codes,
        )
        if not locations:
            PROVIDER_CALLS.labels(provider=provider, operation="forward", outcome="empty").inc()
            return None

        if isinstance(locations, Location):
            locations = [locations]
        candidates = [candidate_from_location(loc, provider) for loc in locations]
        PROVIDER_CALLS.labels(provider=provider, operation="forward", outcome="success").inc()
        return candidates[: self.result_limit]

    def _reverse_with(
        self, provider: str, geocoder: Any, call: RateLimiter, lat: float, lon: float
    ) -> Optional[GeocodeCandidate]:
        location = call(
            geocoder.reverse,
            (lat, lon),
            exactly_one=True,
            addressdetails=True,
        )
        if not location:
            PROVIDER_CALLS.labels(provider=provider, operation="reverse", outcome="empty").inc()
            return None

        if isinstance(location, list):
            location = location[0]
        candidate = candidate_from_location(location, provider)
        PROVIDER_CALLS.labels(provider=provider, operation="reverse", outcome="success").inc()
        return candidate

    def forward_geocode(self, query: str) -> Optional[List[GeocodeCandidate]]:
        """Geocode a free-text address into up to ``result_limit`` candidates.

        The first provider that answers wins, even with an empty answer; the
        next provider is only tried when the previous one failed.

        Args:
            query: Address text to search

        Returns:
            List of candidates, or None when nothing was found or every provider failed
        """
        if not query or not query.strip():
            logger.warning("Empty query provided for geocoding")
            return None

        for provider, geocoder, call in self._providers():
            try:
                return self._forward_with(provider, geocoder, call, query)
            except (GeocoderTimedOut, GeocoderUnavailable, GeocoderServiceError) as e:
                logger.warning(f"{provider} geocoding failed for '{query[:50]}...': {e}")
            except Exception as e:
                logger.error(f"Unexpected {provider} error for '{query[:50]}...': {e}")
            PROVIDER_CALLS.labels(provider=provider, operation="forward", outcome="error").inc()

        logger.warning(f"Failed to geocode address: {query[:100]}...")
        return None

    def reverse_geocode(self, lat: float, lon: float) -> Optional[GeocodeCandidate]:
        """Resolve a coordinate back to an address.

        Args:
            lat: Latitude coordinate
            lon: Longitude coordinate

        Returns:
            The provider's address for the point, or None if every provider failed
        """
        for provider, geocoder, call in self._providers():
            try:
                return self._reverse_with(provider, geocoder, call, lat, lon)
            except (GeocoderTimedOut, GeocoderUnavailable, GeocoderServiceError) as e:
                logger.warning(f"{provider} reverse geocoding failed for {lat},{lon}: {e}")
            except Exception as e:
                logger.error(f"Unexpected {provider} reverse error for {lat},{lon}: {e}")
            PROVIDER_CALLS.labels(provider=provider, operation="reverse", outcome="error").inc()

        return None


# Singleton instance
_geocoding_service: Optional[GeocodingService] = None


def get_geocoding_service() -> GeocodingService:
    """Get or create the singleton geocoding service instance.

    Returns:
        GeocodingService instance
    """
    global _geocoding_service
    if _geocoding_service is None:
        _geocoding_service = GeocodingService()
    return _geocoding_service
