"""Sequential batch geocoding.

Rows are processed one after another: both providers impose hard rate
ceilings, so row i+1 starts only after row i's provider calls are done.
"""

import logging
import threading
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

from pydantic import ValidationError

from rotasmart.core.geocoding.constants import Notes
from rotasmart.core.geocoding.geo import (
    coordinate_from_values,
    format_coordinate,
    is_valid_coordinate,
)
from rotasmart.core.geocoding.metrics import BATCHES_PROCESSED, ROWS_RECONCILED
from rotasmart.core.geocoding.normalizer import normalize_text
from rotasmart.core.geocoding.policy import ReconciliationPolicy, ReconciliationThresholds
from rotasmart.core.geocoding.service import GeocodingService, get_geocoding_service
from rotasmart.models.address import (
    AddressInput,
    AddressResult,
    GeocodeCandidate,
    GeocodeStatus,
)

logger = logging.getLogger(__name__)

RowLike = Union[AddressInput, Mapping[str, Any]]


class LearnedLocationStore(Protocol):
    """Key-value store of coordinates a person confirmed for an address."""

    def get(self, key: str) -> Optional[Tuple[float, float]]: ...

    def save(self, key: str, lat: float, lon: float) -> None: ...


class BatchCancelledError(Exception):
    """Raised when a batch is cancelled between rows."""

    def __init__(self, results: List[AddressResult], total: int):
        super().__init__(f"Batch cancelled after {len(results)} of {total} rows")
        self.results = results
        self.total = total


def build_learning_key(row: AddressInput) -> str:
    """Signature under which a learned coordinate is stored for an address."""
    parts = (row.raw_address, row.bairro, row.cidade, row.estado)
    return "|".join(normalize_text(part) for part in parts)


def _raw_text(row: Any) -> str:
    """Address text of a row that failed validation, when it has one."""
    if isinstance(row, Mapping):
        row = row.get("rawAddress", row.get("raw_address"))
    return row if isinstance(row, str) else ""


class BatchGeocoder:
    """Run the reconciliation policy over batches of address rows."""

    def __init__(
        self,
        service: Optional[GeocodingService] = None,
        policy: Optional[ReconciliationPolicy] = None,
        learned_store: Optional[LearnedLocationStore] = None,
        thresholds: Optional[ReconciliationThresholds] = None,
    ):
        self.service = service or get_geocoding_service()
        self.policy = policy or ReconciliationPolicy(self.service, thresholds)
        self.learned_store = learned_store

    def _apply_learned(self, row: AddressInput) -> AddressInput:
        """Replace the row coordinate with a stored learned one, if any."""
        if self.learned_store is None or row.learned:
            return row

        key = build_learning_key(row)
        try:
            stored = self.learned_store.get(key)
        except Exception as e:
            logger.warning(f"Learned location lookup failed for '{key[:50]}': {e}")
            return row

        if not stored or not is_valid_coordinate(*stored):
            return row

        logger.debug(f"Learned location found for '{key[:50]}'")
        return row.model_copy(
            update={
                "latitude": format_coordinate(stored[0]),
                "longitude": format_coordinate(stored[1]),
                "learned": True,
            }
        )

    def _error_result(self, row: RowLike) -> AddressResult:
        """Pending result for a row that could not be reconciled."""
        if not isinstance(row, AddressInput):
            raw = _raw_text(row)
            return AddressResult(
                original_address=raw,
                corrected_address=raw,
                status=GeocodeStatus.PENDING,
                note=Notes.ROW_ERROR,
            )

        operator = coordinate_from_values(row.latitude, row.longitude)
        return AddressResult(
            original_address=row.raw_address,
            corrected_address=row.raw_address,
            latitude=format_coordinate(operator[0]) if operator else None,
            longitude=format_coordinate(operator[1]) if operator else None,
            status=GeocodeStatus.PENDING,
            note=Notes.ROW_ERROR,
            learned=row.learned,
        )

    def geocode_row(self, row: RowLike) -> AddressResult:
        """Reconcile one row; malformed rows and unexpected errors become pending results."""
        try:
            if not isinstance(row, AddressInput):
                row = AddressInput.model_validate(row)
        except ValidationError as e:
            logger.warning(
                f"Invalid address row '{_raw_text(row)[:50]}': "
                f"{e.error_count()} validation error(s)"
            )
            result = self._error_result(row)
        else:
            try:
                result = self.policy.reconcile(self._apply_learned(row))
            except Exception as e:
                logger.exception(f"Unexpected error reconciling '{row.raw_address[:50]}': {e}")
                result = self._error_result(row)

        ROWS_RECONCILED.labels(status=result.status.value).inc()
        logger.info(
            f"Address '{result.original_address[:50]}' reconciled as {result.status.value} "
            f"({result.note})"
        )
        return result

    def geocode_batch(
        self,
        addresses: Iterable[RowLike],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[AddressResult]:
        """Reconcile every row, in order.

        Args:
            addresses: Rows to reconcile
            cancel_event: Checked before each row; when set the batch stops

        Returns:
            One result per row, in input order

        Raises:
            BatchCancelledError: If ``cancel_event`` was set, with the rows done so far
        """
        rows = list(addresses)
        results: List[AddressResult] = []

        for index, row in enumerate(rows):
            if cancel_event is not None and cancel_event.is_set():
                BATCHES_PROCESSED.labels(outcome="cancelled").inc()
                logger.info(f"Batch cancelled at row {index + 1} of {len(rows)}")
                raise BatchCancelledError(results, len(rows))

            logger.debug(f"Processing address {index + 1} of {len(rows)}")
            results.append(self.geocode_row(row))

        BATCHES_PROCESSED.labels(outcome="completed").inc()
        return results

    def reverse_lookup(self, lat: float, lon: float) -> Optional[GeocodeCandidate]:
        """Resolve a coordinate to an address for the map adjustment screen."""
        if not is_valid_coordinate(lat, lon):
            return None
        return self.service.reverse_geocode(lat, lon)

    def learn_location(self, row: RowLike, lat: float, lon: float) -> str:
        """Store a coordinate a person confirmed for an address.

        Args:
            row: The address the coordinate belongs to
            lat: Confirmed latitude
            lon: Confirmed longitude

        Returns:
            The key the coordinate was stored under

        Raises:
            ValueError: If no store is configured or the coordinate is invalid
        """
        if self.learned_store is None:
            raise ValueError("No learned location store configured")
        if not is_valid_coordinate(lat, lon):
            raise ValueError(f"Invalid coordinate: {lat}, {lon}")
        if not isinstance(row, AddressInput):
            row = AddressInput.model_validate(row)

        key = build_learning_key(row)
        self.learned_store.save(key, lat, lon)
        return key


# Singleton instance
_batch_geocoder: Optional[BatchGeocoder] = None


def get_batch_geocoder() -> BatchGeocoder:
    """Get or create the singleton batch geocoder.

    Returns:
        BatchGeocoder using the shared geocoding service
    """
    global _batch_geocoder
    if _batch_geocoder is None:
        _batch_geocoder = BatchGeocoder()
    return _batch_geocoder
