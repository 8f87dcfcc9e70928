"""Reconciliation policy: turns one address row into one result.

The policy is a decision table. Short-circuit rules run first and may answer
without calling any provider. Otherwise the evidence (forward geocode, reverse
check of the operator coordinate) is gathered once, and the resolution rules
are tried in order until one emits a result. Every branch appends a tag to the
row's note trail; tags are never removed.
"""

import logging
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional

from rotasmart.core.config import Settings, settings as default_settings
from rotasmart.core.geocoding.constants import (
    ACCEPTABLE_CONFIDENCE,
    DISTANCE_THRESHOLD_METERS,
    HIGH_CONFIDENCE,
    MIN_CONFIDENCE,
    Notes,
)
from rotasmart.core.geocoding.geo import (
    Coordinate,
    coordinate_from_values,
    format_coordinate,
    haversine_distance,
    is_valid_coordinate,
)
from rotasmart.core.geocoding.patterns import is_quadra_lote
from rotasmart.core.geocoding.scoring import (
    ExpectedAddress,
    score_candidate,
    select_best_match,
)
from rotasmart.core.geocoding.service import GeocodingService
from rotasmart.models.address import (
    AddressInput,
    AddressResult,
    GeocodeCandidate,
    GeocodeStatus,
    ScoredCandidate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationThresholds:
    """Heuristic limits used by the reconciliation policy."""

    distance_meters: float = DISTANCE_THRESHOLD_METERS
    min_confidence: float = MIN_CONFIDENCE
    acceptable_confidence: float = ACCEPTABLE_CONFIDENCE
    high_confidence: float = HIGH_CONFIDENCE

    def __post_init__(self) -> None:
        """Validate thresholds after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate threshold values.

        Raises:
            ValueError: If a threshold is out of range or out of order
        """
        if self.distance_meters <= 0:
            raise ValueError(
                f"distance_meters must be positive, got {self.distance_meters}"
            )

        for name in ("min_confidence", "acceptable_confidence", "high_confidence"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

        if not (
            self.min_confidence <= self.acceptable_confidence <= self.high_confidence
        ):
            raise ValueError(
                "confidence thresholds must satisfy "
                "min_confidence <= acceptable_confidence <= high_confidence"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ReconciliationThresholds":
        """Build thresholds from application settings."""
        config = config or default_settings
        return cls(
            distance_meters=config.GEOCODING_DISTANCE_THRESHOLD_METERS,
            min_confidence=config.GEOCODING_MIN_CONFIDENCE,
            acceptable_confidence=config.GEOCODING_ACCEPTABLE_CONFIDENCE,
            high_confidence=config.GEOCODING_HIGH_CONFIDENCE,
        )


def build_search_query(row: AddressInput) -> str:
    """Join the address text with its neighborhood, city and state."""
    parts = [row.raw_address, row.bairro, row.cidade, row.estado]
    return ", ".join(part.strip() for part in parts if part and part.strip())


def _percent(score: float) -> str:
    """Whole percentage for note tags, halves rounded up."""
    value = Decimal(str(score)) * 100
    return str(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class RowContext:
    """Evidence collected for one row while it moves through the table."""

    row: AddressInput
    expected: ExpectedAddress
    operator: Optional[Coordinate]
    notes: List[str] = field(default_factory=list)
    search_used: str = ""
    geocoded: Optional[Coordinate] = None
    candidate: Optional[GeocodeCandidate] = None

    @classmethod
    def from_input(cls, row: AddressInput) -> "RowContext":
        return cls(
            row=row,
            expected=ExpectedAddress.from_input(row),
            operator=coordinate_from_values(row.latitude, row.longitude),
        )

    def note(self, tag: str) -> None:
        self.notes.append(tag)

    def accept(self, candidate: GeocodeCandidate, coordinate: Optional[Coordinate] = None) -> None:
        """Record the geocode the resolution rules should work with."""
        self.candidate = candidate
        self.geocoded = coordinate or (candidate.lat, candidate.lon)

    @property
    def accepted_geocode(self) -> Optional[Coordinate]:
        if self.geocoded and is_valid_coordinate(*self.geocoded):
            return self.geocoded
        return None

    def emit(
        self,
        status: GeocodeStatus,
        tag: str,
        coordinate: Optional[Coordinate] = None,
        corrected_address: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> AddressResult:
        self.note(tag)
        return AddressResult(
            original_address=self.row.raw_address,
            corrected_address=corrected_address or self.row.raw_address,
            latitude=format_coordinate(coordinate[0]) if coordinate else None,
            longitude=format_coordinate(coordinate[1]) if coordinate else None,
            status=status,
            note=";".join(self.notes),
            search_used=self.search_used,
            display_name=display_name,
            learned=self.row.learned,
        )


Rule = Callable[[RowContext], Optional[AddressResult]]


class ReconciliationPolicy:
    """Decide the final coordinate and status of each address row."""

    def __init__(
        self,
        service: GeocodingService,
        thresholds: Optional[ReconciliationThresholds] = None,
    ):
        """Initialize the policy.

        Args:
            service: Provider client used for forward and reverse lookups
            thresholds: Optional thresholds, defaults to the application settings
        """
        self.service = service
        self.thresholds = thresholds or ReconciliationThresholds.from_settings()

        self.short_circuit_rules: tuple[Rule, ...] = (
            self._learned_bypass,
            self._manual_review,
        )
        self.resolution_rules: tuple[Rule, ...] = (
            self._distance_conflict,
            self._operator_confirmed,
            self._geocoded_only,
            self._operator_fallback,
            self._no_coordinates,
        )

    def reconcile(self, row: AddressInput) -> AddressResult:
        """Reconcile one row.

        Args:
            row: Address row as submitted

        Returns:
            The row's result; provider failures only weaken the evidence
        """
        ctx = RowContext.from_input(row)

        for rule in self.short_circuit_rules:
            result = rule(ctx)
            if result is not None:
                return result

        self._gather_evidence(ctx)

        for rule in self.resolution_rules:
            result = rule(ctx)
            if result is not None:
                return result

        # _no_coordinates always answers
        raise RuntimeError("No reconciliation rule matched")

    # Short-circuit rules

    def _learned_bypass(self, ctx: RowContext) -> Optional[AddressResult]:
        if not (ctx.row.learned and ctx.operator):
            return None
        return ctx.emit(GeocodeStatus.UPDATED, Notes.LEARNED_USED, coordinate=ctx.operator)

    def _manual_review(self, ctx: RowContext) -> Optional[AddressResult]:
        if not is_quadra_lote(ctx.row.raw_address):
            return None
        return ctx.emit(GeocodeStatus.PENDING, Notes.QUADRA_LOTE)

    # Evidence

    def _gather_evidence(self, ctx: RowContext) -> None:
        if not ctx.row.raw_address.strip():
            return

        query = build_search_query(ctx.row)
        ctx.search_used = f"geocode:{query}"

        try:
            candidates = self.service.forward_geocode(query)
            if not candidates:
                ctx.note(Notes.NOT_FOUND)
                return

            match = select_best_match(
                candidates, ctx.expected, minimum=self.thresholds.min_confidence
            )
            if match is None:
                ctx.note(Notes.NO_COMPATIBLE_RESULT)
                return

            logger.debug(
                f"Best match {match.score:.1%} at {match.candidate.lat},{match.candidate.lon}"
            )
            if ctx.operator:
                self._cross_validate(ctx, match)
            else:
                self._accept_uncontested(ctx, match)
        except Exception as e:
            logger.warning(f"Error during geocoding of '{ctx.row.raw_address[:50]}': {e}")
            ctx.note(Notes.GEOCODING_ERROR)

    def _cross_validate(self, ctx: RowContext, match: ScoredCandidate) -> None:
        """Check the operator coordinate with a reverse lookup of its own."""
        high = self.thresholds.high_confidence
        forward = match.score

        reverse = self.service.reverse_geocode(*ctx.operator)
        if reverse is None or not reverse.address_details:
            if forward >= self.thresholds.acceptable_confidence:
                ctx.accept(match.candidate)
                ctx.note(Notes.GEOCODED.format(forward=_percent(forward)))
            else:
                ctx.note(Notes.LOW_CONFIDENCE_REVIEW.format(forward=_percent(forward)))
            return

        backward = score_candidate(reverse.address_components, ctx.expected)
        logger.debug(f"Reverse geocoding confidence {backward:.1%}")

        if forward >= high and backward >= high:
            ctx.accept(match.candidate)
            ctx.note(
                Notes.HIGH_CONFIDENCE_BOTH.format(
                    forward=_percent(forward), reverse=_percent(backward)
                )
            )
        elif backward >= high:
            ctx.accept(match.candidate, coordinate=ctx.operator)
            ctx.note(Notes.ORIGINAL_VALIDATED.format(reverse=_percent(backward)))
        elif forward >= high:
            ctx.accept(match.candidate)
            ctx.note(Notes.GEOCODE_CORRECTED.format(forward=_percent(forward)))
        else:
            ctx.accept(match.candidate)
            ctx.note(Notes.MEDIUM_CONFIDENCE.format(best=_percent(max(forward, backward))))

    def _accept_uncontested(self, ctx: RowContext, match: ScoredCandidate) -> None:
        """Without an operator coordinate the geocode is the only evidence."""
        forward = match.score
        ctx.accept(match.candidate)
        if forward >= self.thresholds.acceptable_confidence:
            ctx.note(Notes.GEOCODED.format(forward=_percent(forward)))
        else:
            ctx.note(Notes.LOW_CONFIDENCE.format(forward=_percent(forward)))

    # Resolution rules

    def _distance_conflict(self, ctx: RowContext) -> Optional[AddressResult]:
        geocoded = ctx.accepted_geocode
        if not (geocoded and ctx.operator):
            return None
        distance = haversine_distance(*ctx.operator, *geocoded)
        logger.debug(f"Operator and geocoded coordinates are {distance:.2f}m apart")
        if distance <= self.thresholds.distance_meters:
            return None
        return ctx.emit(
            GeocodeStatus.PENDING,
            Notes.DISTANCE_CONFLICT,
            coordinate=ctx.operator,
            display_name=ctx.candidate.display_name if ctx.candidate else None,
        )

    def _operator_confirmed(self, ctx: RowContext) -> Optional[AddressResult]:
        if not (ctx.accepted_geocode and ctx.operator):
            return None
        return ctx.emit(
            GeocodeStatus.VALID,
            Notes.OPERATOR_CONFIRMED,
            coordinate=ctx.operator,
            display_name=ctx.candidate.display_name if ctx.candidate else None,
        )

    def _geocoded_only(self, ctx: RowContext) -> Optional[AddressResult]:
        geocoded = ctx.accepted_geocode
        if not geocoded or ctx.candidate is None:
            return None
        return ctx.emit(
            GeocodeStatus.VALID,
            Notes.GEOCODED_BY.format(provider=ctx.candidate.provider or "provedor"),
            coordinate=geocoded,
            corrected_address=ctx.candidate.display_name,
            display_name=ctx.candidate.display_name,
        )

    def _operator_fallback(self, ctx: RowContext) -> Optional[AddressResult]:
        if not ctx.operator:
            return None
        return ctx.emit(GeocodeStatus.VALID, Notes.OPERATOR_FALLBACK, coordinate=ctx.operator)

    def _no_coordinates(self, ctx: RowContext) -> Optional[AddressResult]:
        return ctx.emit(GeocodeStatus.PENDING, Notes.NO_COORDINATES)
