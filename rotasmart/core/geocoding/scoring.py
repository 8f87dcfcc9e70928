"""Confidence scoring of geocoded candidates against the expected address."""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from rotasmart.core.geocoding.constants import (
    CITY_WEIGHT,
    HOUSE_NUMBER_WEIGHT,
    MIN_CONFIDENCE,
    NEIGHBORHOOD_WEIGHT,
    STATE_WEIGHT,
    STREET_NAME_WEIGHT,
    STREET_NUMBER_WEIGHT,
    STREET_WEIGHT,
)
from rotasmart.core.geocoding.normalizer import normalize_text
from rotasmart.models.address import (
    AddressComponents,
    AddressInput,
    GeocodeCandidate,
    ScoredCandidate,
)

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class ExpectedAddress:
    """Normalized fields a candidate is expected to match."""

    raw_address: str = ""
    bairro: str = ""
    cidade: str = ""
    estado: str = ""

    @classmethod
    def from_input(cls, row: AddressInput) -> "ExpectedAddress":
        return cls(
            raw_address=normalize_text(row.raw_address),
            bairro=normalize_text(row.bairro),
            cidade=normalize_text(row.cidade),
            estado=normalize_text(row.estado),
        )


Scorer = Callable[[Optional[AddressComponents], ExpectedAddress], float]


def _overlaps(got: str, expected: str) -> bool:
    """Substring match in either direction."""
    return bool(got) and (expected in got or got in expected)


def score_candidate(
    components: Optional[AddressComponents], expected: ExpectedAddress
) -> float:
    """Score how well a provider address matches the expected fields.

    Only the fields present in the expectation count toward the possible
    score, so rows without a neighborhood or state are not penalized. The
    house-number weight is possible only when the candidate resolved to a
    number and is earned when the raw address contains digits.

    Args:
        components: Address components of the candidate
        expected: Normalized expected fields

    Returns:
        Score in [0, 1], rounded to 4 decimals
    """
    if components is None:
        return 0.0

    got_city = normalize_text(components.city or components.county)
    got_state = normalize_text(components.state)
    got_suburb = normalize_text(components.suburb)
    got_road = normalize_text(components.road)
    got_number = normalize_text(components.house_number)

    achieved = 0.0
    possible = 0.0

    if expected.cidade:
        possible += CITY_WEIGHT
        if _overlaps(got_city, expected.cidade):
            achieved += CITY_WEIGHT

    if expected.estado:
        possible += STATE_WEIGHT
        if _overlaps(got_state, expected.estado):
            achieved += STATE_WEIGHT

    if expected.bairro:
        possible += NEIGHBORHOOD_WEIGHT
        if _overlaps(got_suburb, expected.bairro):
            achieved += NEIGHBORHOOD_WEIGHT

    if expected.raw_address:
        possible += STREET_WEIGHT
        if got_road and got_road in expected.raw_address:
            achieved += STREET_NAME_WEIGHT
        if got_number and got_number in expected.raw_address:
            achieved += STREET_NUMBER_WEIGHT

    if got_number:
        possible += HOUSE_NUMBER_WEIGHT
        if _DIGITS.search(expected.raw_address):
            achieved += HOUSE_NUMBER_WEIGHT

    score = round(min(achieved / possible, 1.0), 4) if possible > 0 else 0.0

    logger.debug(
        f"Confidence {score:.1%}: city '{expected.cidade}' vs '{got_city}', "
        f"bairro '{expected.bairro}' vs '{got_suburb}', "
        f"state '{expected.estado}' vs '{got_state}', "
        f"road '{got_road}', house '{got_number}'"
    )
    return score


def select_best_match(
    candidates: Optional[Iterable[GeocodeCandidate]],
    expected: ExpectedAddress,
    minimum: float = MIN_CONFIDENCE,
    scorer: Scorer = score_candidate,
) -> Optional[ScoredCandidate]:
    """Pick the highest scoring candidate above the acceptance floor.

    Ties keep the first candidate seen. A best score at or below ``minimum``
    is treated as noise and yields None.
    """
    best: Optional[GeocodeCandidate] = None
    best_score = 0.0

    for candidate in candidates or ():
        score = scorer(candidate.address_components, expected)
        if score > best_score:
            best = candidate
            best_score = score

    if best is None or best_score <= minimum:
        return None
    return ScoredCandidate(candidate=best, score=best_score)
