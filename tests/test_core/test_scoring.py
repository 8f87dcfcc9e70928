"""Tests for candidate confidence scoring and best-match selection."""

import pytest

from rotasmart.core.geocoding.scoring import (
    ExpectedAddress,
    score_candidate,
    select_best_match,
)
from rotasmart.models.address import AddressComponents, AddressInput
from tests.fixtures.geocoding import CITY_ONLY_MATCH, CITY_STATE_MATCH


@pytest.fixture
def expected() -> ExpectedAddress:
    return ExpectedAddress.from_input(
        AddressInput(
            raw_address="R. das Flores, 123",
            bairro="Centro",
            cidade="São Paulo",
            estado="São Paulo",
        )
    )


def test_expected_address_is_normalized(expected: ExpectedAddress) -> None:
    assert expected.raw_address == "rua das flores, 123"
    assert expected.cidade == "sao paulo"
    assert expected.bairro == "centro"


def test_full_match_scores_one(expected: ExpectedAddress) -> None:
    """Every field matching gives full confidence."""
    components = AddressComponents(
        road="Rua das Flores",
        house_number="123",
        suburb="Centro",
        city="São Paulo",
        state="São Paulo",
    )
    assert score_candidate(components, expected) == 1.0


def test_partial_match_uses_expected_fields(expected: ExpectedAddress) -> None:
    """City and state out of city, state, neighborhood and street."""
    components = AddressComponents(**CITY_STATE_MATCH)
    assert score_candidate(components, expected) == pytest.approx(0.5556)


def test_county_stands_in_for_city(expected: ExpectedAddress) -> None:
    components = AddressComponents(county="São Paulo", state="São Paulo")
    assert score_candidate(components, expected) == pytest.approx(0.5556)


def test_missing_expected_fields_are_not_penalized() -> None:
    """A row with only a city is judged on the city alone."""
    expected = ExpectedAddress.from_input(AddressInput(cidade="Campinas"))
    components = AddressComponents(city="Campinas", state="São Paulo")
    assert score_candidate(components, expected) == 1.0


def test_no_components_scores_zero(expected: ExpectedAddress) -> None:
    assert score_candidate(None, expected) == 0.0


def test_nothing_expected_scores_zero() -> None:
    components = AddressComponents(city="Campinas")
    assert score_candidate(components, ExpectedAddress()) == 0.0


def test_house_number_weight_requires_digits_in_address() -> None:
    """A resolved house number only counts when the row has a number."""
    expected = ExpectedAddress.from_input(
        AddressInput(
            raw_address="Rua das Flores",
            bairro="Centro",
            cidade="São Paulo",
            estado="São Paulo",
        )
    )
    components = AddressComponents(city="São Paulo", house_number="999")
    assert score_candidate(components, expected) == pytest.approx(0.3)


def test_city_only_candidate_at_floor_is_rejected(make_candidate) -> None:
    """A best score of exactly 0.30 is noise."""
    expected = ExpectedAddress.from_input(
        AddressInput(
            raw_address="Rua das Flores",
            bairro="Centro",
            cidade="São Paulo",
            estado="São Paulo",
        )
    )
    candidate = make_candidate(address={"city": "São Paulo", "house_number": "999"})
    assert select_best_match([candidate], expected) is None


def test_city_only_candidate_above_floor_is_kept(make_candidate, expected) -> None:
    candidate = make_candidate(address=CITY_ONLY_MATCH)
    match = select_best_match([candidate], expected)
    assert match is not None
    assert match.score == pytest.approx(0.3333)


@pytest.mark.parametrize("score,accepted", [(0.30, False), (0.31, True), (0.0, False)])
def test_acceptance_floor_is_exclusive(make_candidate, expected, score, accepted) -> None:
    match = select_best_match(
        [make_candidate()], expected, scorer=lambda components, exp: score
    )
    assert (match is not None) is accepted


def test_best_candidate_wins(make_candidate, expected) -> None:
    weak = make_candidate(lat=-22.0, address=CITY_ONLY_MATCH)
    strong = make_candidate(lat=-23.0)
    match = select_best_match([weak, strong], expected)
    assert match is not None
    assert match.candidate == strong
    assert match.score == 1.0


def test_ties_keep_first_candidate(make_candidate, expected) -> None:
    first = make_candidate(lat=-23.1)
    second = make_candidate(lat=-23.2)
    match = select_best_match([first, second], expected)
    assert match is not None
    assert match.candidate.lat == -23.1


@pytest.mark.parametrize("candidates", [None, []])
def test_no_candidates(candidates, expected) -> None:
    assert select_best_match(candidates, expected) is None


def test_custom_minimum(make_candidate, expected) -> None:
    candidate = make_candidate(address=CITY_STATE_MATCH)
    assert select_best_match([candidate], expected, minimum=0.6) is None
    assert select_best_match([candidate], expected, minimum=0.5) is not None
