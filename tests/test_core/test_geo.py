"""Tests for coordinate helpers."""

import math

import pytest

from rotasmart.core.geocoding.geo import (
    coordinate_from_values,
    format_coordinate,
    haversine_distance,
    is_valid_coordinate,
    parse_coordinate,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("-23.5505", -23.5505),
        ("-23,5505", -23.5505),
        (" -46.6333 ", -46.6333),
        (-23.5505, -23.5505),
        (0, 0.0),
    ],
)
def test_parse_coordinate(value, expected) -> None:
    """Numbers and strings with either decimal separator parse."""
    assert parse_coordinate(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", [None, "", "  ", "abc", "nan", float("nan"), True])
def test_parse_coordinate_rejects_non_numbers(value) -> None:
    """Missing and non-numeric values parse to None."""
    assert parse_coordinate(value) is None


@pytest.mark.parametrize(
    "lat,lon,valid",
    [
        (-23.5505, -46.6333, True),
        (90, 180, True),
        (-90, -180, True),
        (0, 0, False),
        (0, -46.6333, True),
        (91, 0.5, False),
        (10, -181, False),
        (None, 10, False),
        (math.inf, 10, False),
    ],
)
def test_is_valid_coordinate(lat, lon, valid: bool) -> None:
    """Coordinates must be present, finite, in range and not (0, 0)."""
    assert is_valid_coordinate(lat, lon) is valid


def test_coordinate_from_values() -> None:
    """Raw spreadsheet values become a validated pair."""
    assert coordinate_from_values("-23,5505", "-46.6333") == (-23.5505, -46.6333)
    assert coordinate_from_values("0", "0") is None
    assert coordinate_from_values("", "-46.6333") is None
    assert coordinate_from_values(None, None) is None


def test_haversine_distance_one_degree_latitude() -> None:
    """One degree of latitude is about 111.19 km on the mean-radius sphere."""
    distance = haversine_distance(0.0, 0.0, 1.0, 0.0)
    assert distance == pytest.approx(111194.93, abs=0.01)


def test_haversine_distance_sao_paulo_rio() -> None:
    """São Paulo to Rio de Janeiro is roughly 360 km."""
    distance = haversine_distance(-23.5505, -46.6333, -22.9068, -43.1729)
    assert 355_000 < distance < 365_000


def test_haversine_distance_same_point() -> None:
    assert haversine_distance(-23.5505, -46.6333, -23.5505, -46.6333) == 0.0


def test_format_coordinate() -> None:
    """Coordinates are emitted with six decimals."""
    assert format_coordinate(-23.5505) == "-23.550500"
    assert format_coordinate(-46.63330049) == "-46.633300"
