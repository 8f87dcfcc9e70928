"""Tests for the geocoding provider client."""

from unittest.mock import Mock, patch

import pytest
from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable

from rotasmart.core.geocoding.service import (
    GeocodingService,
    candidate_from_location,
    get_geocoding_service,
)


class TestGeocodingService:
    """Unit tests for GeocodingService."""

    @pytest.fixture
    def service(self, test_settings, mock_locationiq, mock_nominatim) -> GeocodingService:
        """Service with both providers mocked."""
        return GeocodingService(
            config=test_settings,
            locationiq=mock_locationiq,
            nominatim=mock_nominatim,
        )

    def test_initialization_without_api_key(self, test_settings, mock_nominatim):
        """Without a LocationIQ key only Nominatim is used."""
        with patch("rotasmart.core.geocoding.service.LocationIQ") as mock_cls:
            service = GeocodingService(config=test_settings, nominatim=mock_nominatim)

        mock_cls.assert_not_called()
        assert service.locationiq is None
        assert service.provider_names == ["nominatim"]

    def test_initialization_with_api_key(self, test_settings, mock_nominatim):
        """An API key enables LocationIQ as the primary provider."""
        config = test_settings.model_copy(update={"LOCATIONIQ_API_KEY": "pk.test"})

        with patch("rotasmart.core.geocoding.service.LocationIQ") as mock_cls:
            service = GeocodingService(config=config, nominatim=mock_nominatim)

        mock_cls.assert_called_once_with(
            api_key="pk.test",
            timeout=config.GEOCODING_TIMEOUT,
            user_agent=config.NOMINATIM_USER_AGENT,
        )
        assert service.provider_names == ["locationiq", "nominatim"]

    def test_blank_api_key_disables_locationiq(self, test_settings, mock_nominatim):
        config = test_settings.model_copy(update={"LOCATIONIQ_API_KEY": "   "})
        service = GeocodingService(config=config, nominatim=mock_nominatim)
        assert service.provider_names == ["nominatim"]

    def test_nominatim_uses_configured_user_agent(self, test_settings):
        with patch("rotasmart.core.geocoding.service.Nominatim") as mock_cls:
            GeocodingService(config=test_settings)

        mock_cls.assert_called_once_with(
            user_agent="RotaSmartApp/1.0 (contact@rotasmart.com)",
            timeout=test_settings.GEOCODING_TIMEOUT,
        )

    def test_forward_geocode_uses_primary(
        self, service, mock_locationiq, mock_nominatim, make_location
    ):
        """The primary provider answers and the fallback is not called."""
        mock_locationiq.geocode.return_value = [make_location()]

        candidates = service.forward_geocode("Rua das Flores, 123, São Paulo")

        assert candidates is not None
        assert len(candidates) == 1
        assert candidates[0].provider == "locationiq"
        assert candidates[0].lat == pytest.approx(-23.5505)
        assert candidates[0].address_components.road == "Rua das Flores"
        assert candidates[0].address_components.house_number == "123"
        mock_locationiq.geocode.assert_called_once_with(
            "Rua das Flores, 123, São Paulo",
            exactly_one=False,
            limit=3,
            addressdetails=True,
            country_codes="br",
        )
        mock_nominatim.geocode.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            GeocoderServiceError("quota exceeded"),
            GeocoderTimedOut("timeout"),
            GeocoderUnavailable("down"),
            RuntimeError("unexpected"),
        ],
    )
    def test_forward_geocode_falls_back_on_error(
        self, service, mock_locationiq, mock_nominatim, make_location, error
    ):
        """A failing primary hands the query to Nominatim."""
        mock_locationiq.geocode.side_effect = error
        mock_nominatim.geocode.return_value = [make_location()]

        candidates = service.forward_geocode("Rua das Flores, 123")

        assert candidates is not None
        assert candidates[0].provider == "nominatim"
        mock_nominatim.geocode.assert_called_once()

    def test_forward_geocode_empty_primary_does_not_fall_back(
        self, service, mock_locationiq, mock_nominatim
    ):
        """An empty answer is an answer."""
        mock_locationiq.geocode.return_value = []

        assert service.forward_geocode("Rua Inexistente 1") is None
        mock_nominatim.geocode.assert_not_called()

    def test_forward_geocode_all_providers_fail(
        self, service, mock_locationiq, mock_nominatim
    ):
        """Provider failures are never raised."""
        mock_locationiq.geocode.side_effect = GeocoderServiceError("boom")
        mock_nominatim.geocode.side_effect = GeocoderTimedOut("slow")

        assert service.forward_geocode("Rua das Flores") is None

    @pytest.mark.parametrize("query", ["", "   "])
    def test_forward_geocode_empty_query(self, service, mock_locationiq, query):
        assert service.forward_geocode(query) is None
        mock_locationiq.geocode.assert_not_called()

    def test_forward_geocode_caps_result_limit(
        self, service, mock_locationiq, make_location
    ):
        mock_locationiq.geocode.return_value = [
            make_location(lat=-23.5 - i / 100) for i in range(5)
        ]
        assert len(service.forward_geocode("Rua das Flores")) == 3

    def test_forward_geocode_single_location(
        self, service, mock_locationiq, make_location
    ):
        mock_locationiq.geocode.return_value = make_location()
        candidates = service.forward_geocode("Rua das Flores")
        assert candidates is not None
        assert len(candidates) == 1

    def test_reverse_geocode(self, service, mock_locationiq, make_location):
        mock_locationiq.reverse.return_value = make_location()

        candidate = service.reverse_geocode(-23.5505, -46.6333)

        assert candidate is not None
        assert candidate.display_name.startswith("Rua das Flores")
        assert candidate.address_details["city"] == "São Paulo"
        mock_locationiq.reverse.assert_called_once_with(
            (-23.5505, -46.6333), exactly_one=True, addressdetails=True
        )

    def test_reverse_geocode_falls_back_on_error(
        self, service, mock_locationiq, mock_nominatim, make_location
    ):
        mock_locationiq.reverse.side_effect = GeocoderServiceError("boom")
        mock_nominatim.reverse.return_value = make_location()

        candidate = service.reverse_geocode(-23.5505, -46.6333)

        assert candidate is not None
        assert candidate.provider == "nominatim"

    def test_reverse_geocode_all_providers_fail(
        self, service, mock_locationiq, mock_nominatim
    ):
        mock_locationiq.reverse.side_effect = GeocoderServiceError("boom")
        mock_nominatim.reverse.side_effect = GeocoderUnavailable("down")

        assert service.reverse_geocode(-23.5505, -46.6333) is None

    def test_rate_limiter_is_shared_by_operations(self, service):
        """Forward and reverse calls to one provider share a limiter."""
        assert service.locationiq_call is not None
        assert service.nominatim_call is not None
        assert service.locationiq_call is not service.nominatim_call

    def test_rate_limiter_spacing_comes_from_settings(self, test_settings, mock_nominatim):
        config = test_settings.model_copy(update={"NOMINATIM_RATE_LIMIT": 1.0})
        service = GeocodingService(config=config, nominatim=mock_nominatim)
        assert service.nominatim_call.min_delay_seconds == 1.0


class TestCandidateFromLocation:
    """Conversion of geopy locations into candidates."""

    def test_prefers_town_when_city_missing(self, make_location):
        location = make_location(address={"town": "Jundiaí", "state": "São Paulo"})
        candidate = candidate_from_location(location, "nominatim")
        assert candidate.address_components.city == "Jundiaí"

    def test_neighbourhood_used_as_suburb(self, make_location):
        location = make_location(address={"neighbourhood": "Vila Madalena"})
        candidate = candidate_from_location(location, "nominatim")
        assert candidate.address_components.suburb == "Vila Madalena"

    def test_missing_address_details(self, make_location):
        location = make_location(address={})
        candidate = candidate_from_location(location, "locationiq")
        assert candidate.address_details == {}
        assert candidate.address_components.city is None

    def test_malformed_coordinates(self):
        location = Mock(latitude="north", longitude=None, raw={}, address="?")
        with pytest.raises(ValueError):
            candidate_from_location(location, "nominatim")


def test_get_geocoding_service_is_singleton(monkeypatch, test_settings):
    monkeypatch.setattr("rotasmart.core.geocoding.service._geocoding_service", None)
    monkeypatch.setattr("rotasmart.core.geocoding.service.default_settings", test_settings)

    with patch("rotasmart.core.geocoding.service.Nominatim"):
        first = get_geocoding_service()
        second = get_geocoding_service()

    assert first is second
    assert isinstance(first, GeocodingService)
