"""Prometheus metrics for the geocoding engine."""

from prometheus_client import Counter

PROVIDER_CALLS = Counter(
    "geocoding_provider_calls_total",
    "Total number of calls made to geocoding providers",
    ["provider", "operation", "outcome"],  # outcome: success, empty, error
)

ROWS_RECONCILED = Counter(
    "geocoding_rows_reconciled_total",
    "Total number of address rows reconciled",
    ["status"],  # valid, pending, atualizado
)

BATCHES_PROCESSED = Counter(
    "geocoding_batches_total",
    "Total number of address batches processed",
    ["outcome"],  # completed, cancelled
)
