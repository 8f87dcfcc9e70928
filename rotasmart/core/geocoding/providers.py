"""Geocoder classes for providers geopy does not ship."""

from geopy.geocoders import Nominatim

LOCATIONIQ_DOMAIN = "us1.locationiq.com"


class LocationIQ(Nominatim):
    """LocationIQ geocoder.

    LocationIQ serves a Nominatim-compatible API under its own paths and
    authenticates every request with a ``key`` query parameter, so answers
    are parsed by the Nominatim geocoder unchanged.
    """

    geocode_path = "/v1/search.php"
    reverse_path = "/v1/reverse.php"

    def __init__(self, api_key: str, *, domain: str = LOCATIONIQ_DOMAIN, **kwargs):
        """Initialize the geocoder.

        Args:
            api_key: LocationIQ access token
            domain: API host, regional hosts such as ``eu1.locationiq.com`` work too
            **kwargs: Passed to ``Nominatim`` (timeout, user_agent, proxies, ...)
        """
        super().__init__(domain=domain, **kwargs)
        self.api_key = api_key

    def _construct_url(self, base_api, params):
        params["key"] = self.api_key
        return super()._construct_url(base_api, params)
