"""Coordinate parsing, validation and distance helpers."""

import math
from math import asin, cos, radians, sin, sqrt
from typing import Any, Optional, Tuple

from rotasmart.core.geocoding.constants import EARTH_RADIUS_METERS

Coordinate = Tuple[float, float]


def parse_coordinate(value: Any) -> Optional[float]:
    """Parse an operator-entered coordinate value.

    Accepts numbers and strings, with either a decimal point or a decimal
    comma ("-23,5505").

    Args:
        value: Raw latitude or longitude

    Returns:
        The parsed float, or None when the value is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        cleaned = str(value).strip().replace(",", ".", 1)
        if not cleaned:
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
    if math.isnan(parsed):
        return None
    return parsed


def is_valid_coordinate(lat: Optional[float], lon: Optional[float]) -> bool:
    """Check that a coordinate pair is usable.

    Both values must be present, finite and in range. Exactly (0, 0) is
    rejected since it almost always means an empty spreadsheet cell.
    """
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    if lat < -90 or lat > 90:
        return False
    if lon < -180 or lon > 180:
        return False
    if lat == 0 and lon == 0:
        return False
    return True


def coordinate_from_values(lat: Any, lon: Any) -> Optional[Coordinate]:
    """Parse and validate a raw latitude/longitude pair in one step."""
    parsed_lat = parse_coordinate(lat)
    parsed_lon = parse_coordinate(lon)
    if not is_valid_coordinate(parsed_lat, parsed_lon):
        return None
    return (parsed_lat, parsed_lon)  # type: ignore[return-value]


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great circle distance between two points in meters."""
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(a))

    return EARTH_RADIUS_METERS * c


def format_coordinate(value: float) -> str:
    """Format a coordinate with the 6 decimals emitted in results."""
    return f"{value:.6f}"
